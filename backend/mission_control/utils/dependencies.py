"""
FastAPI dependencies for resolving the acting agent.

Every mutation names its actor explicitly: the session key sent in the
agent session header is looked up in the agent roster.
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from mission_control.config import settings
from mission_control.database import get_db
from mission_control.errors import PermissionDeniedError, UnauthorizedError
from mission_control.models.agent import Agent

# auto_error=False so a missing header surfaces as our own 401 payload
agent_session = APIKeyHeader(name=settings.AGENT_SESSION_HEADER, auto_error=False)


def _resolve_agent(session_key: Optional[str], db: Session) -> Optional[Agent]:
    if not session_key:
        return None
    return db.query(Agent).filter(Agent.session_key == session_key).first()


def get_current_agent(
    session_key: Optional[str] = Depends(agent_session),
    db: Session = Depends(get_db)
) -> Agent:
    """
    Get the acting agent from the session header.

    Raises:
        UnauthorizedError: header missing or session key unknown
    """
    if not session_key:
        raise UnauthorizedError(f"Missing {settings.AGENT_SESSION_HEADER} header")

    agent = _resolve_agent(session_key, db)
    if agent is None:
        raise UnauthorizedError("Unknown agent session")
    return agent


def get_lead_agent(
    current_agent: Agent = Depends(get_current_agent)
) -> Agent:
    """Acting agent, required to be lead level."""
    if not current_agent.is_lead:
        raise PermissionDeniedError("This operation requires a lead agent")
    return current_agent
