"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Header, HTTPException, Request
from crediario.application.context import RequestContext, Role
from crediario.infrastructure.clients.documents import DocumentClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_request_context(
    request: Request,
    x_tenant_id: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None),
    x_user_role: Role = Header(Role.VENDEDOR),
) -> RequestContext:
    """
    Build the acting user's context from the identity headers.

    The session provider in front of the gateway authenticates the user and
    forwards tenant, user and role; requests without them are rejected.
    """
    if not x_tenant_id or not x_user_id:
        raise HTTPException(status_code=401, detail="Missing tenant or user identity")

    return RequestContext(
        acting_user_id=x_user_id,
        tenant_id=x_tenant_id,
        role=x_user_role,
        request_id=get_request_id(request),
    )


def get_document_client() -> DocumentClient:
    """Provide contract rendering client instance"""
    return DocumentClient()
