from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_type = Column(String(100), default="application/pdf", nullable=False)
    file_data = Column(Text)
    file_path = Column(Text)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="SET NULL"), index=True)
    experiment_id = Column(Integer, ForeignKey("experiments.id", ondelete="SET NULL"))
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    options = Column(JSON, default=dict)  # ReportOptions used to render the file
    created_at = Column(DateTime, default=utcnow, nullable=False)

    author = relationship("User", back_populates="reports")
    project = relationship("Project")

    @property
    def stored_externally(self) -> bool:
        return bool(self.file_path)
