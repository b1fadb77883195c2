"""
ChatMessage model - AI tutor conversation history
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey
from eduprep.database import Base, utcnow


class ChatMessage(Base):
    __tablename__ = "chat_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("users.id"), index=True)
    message = Column(Text, nullable=False)
    response = Column(Text, nullable=False)
    context = Column(Text)
    provider = Column(String(32))
    timestamp = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<ChatMessage(id={self.id}, user_id={self.user_id}, provider={self.provider})>"
