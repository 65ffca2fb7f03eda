"""
Deliverable models: the versioned document and its immutable history rows.
"""
from enum import Enum

from sqlalchemy import BigInteger, Column, Integer, String, Text, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from mission_control.database import Base
from mission_control.models.types import JSONType
from mission_control.utils.clock import utcnow


class DeliverableType(str, Enum):
    RESEARCH = "research"
    BLOG_DRAFT = "blog_draft"
    EMAIL_COPY = "email_copy"
    WHITE_PAPER = "white_paper"
    PRESENTATION = "presentation"
    IMAGE = "image"
    SPREADSHEET = "spreadsheet"
    BRIEF = "brief"
    OTHER = "other"


class DeliverableStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ContentFormat(str, Enum):
    MARKDOWN = "markdown"
    PLAIN = "plain"
    HTML = "html"


class Deliverable(Base):
    """
    A document produced by an agent.

    ``version`` starts at 1 and is bumped by exactly one on every mutation;
    each bump is paired with a DeliverableVersion row.
    """

    __tablename__ = "deliverables"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    type = Column(String(30), nullable=False)
    status = Column(String(20), nullable=False, default=DeliverableStatus.DRAFT.value)
    squad = Column(String(20), nullable=False)

    created_by_agent_id = Column(Integer, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True)
    task_id = Column(Integer, nullable=True)  # soft reference

    # Content
    content = Column(Text, nullable=True)
    content_format = Column(String(20), nullable=False, default=ContentFormat.MARKDOWN.value)
    structured_data = Column(JSONType, nullable=True)

    # Binary attachment lives in the object store; only its reference is kept here
    file_url = Column(String(2000), nullable=True)
    file_type = Column(String(200), nullable=True)
    file_size = Column(BigInteger, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    versions = relationship(
        "DeliverableVersion",
        back_populates="deliverable",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DeliverableVersion.version",
    )
    created_by = relationship("Agent", lazy="joined")

    __table_args__ = (
        Index("ix_deliverables_task", "task_id"),
        Index("ix_deliverables_agent", "created_by_agent_id"),
        Index("ix_deliverables_status", "status"),
        Index("ix_deliverables_type", "type"),
        Index("ix_deliverables_squad", "squad"),
        Index("ix_deliverables_squad_status", "squad", "status"),
        Index("ix_deliverables_squad_type", "squad", "type"),
    )

    def __repr__(self):
        return f"<Deliverable {self.id} v{self.version} {self.status}>"


class DeliverableVersion(Base):
    """Immutable snapshot, one row per (deliverable_id, version)."""

    __tablename__ = "deliverable_versions"

    id = Column(Integer, primary_key=True, index=True)
    deliverable_id = Column(
        Integer, ForeignKey("deliverables.id", ondelete="CASCADE"), nullable=False
    )
    version = Column(Integer, nullable=False)
    content = Column(Text, nullable=True)
    structured_data = Column(JSONType, nullable=True)
    edited_by = Column(String(200), nullable=False)  # display name at edit time
    change_summary = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    deliverable = relationship("Deliverable", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("deliverable_id", "version", name="uq_deliverable_versions_deliverable_version"),
        Index("ix_deliverable_versions_deliverable", "deliverable_id"),
    )

    def __repr__(self):
        return f"<DeliverableVersion {self.deliverable_id}@{self.version}>"
