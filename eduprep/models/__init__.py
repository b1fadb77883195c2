"""
Database models package
"""
from eduprep.models.user import User
from eduprep.models.test import Test
from eduprep.models.test_result import TestResult
from eduprep.models.chat_message import ChatMessage
from eduprep.models.experiment_event import ExperimentEvent

__all__ = ["User", "Test", "TestResult", "ChatMessage", "ExperimentEvent"]
