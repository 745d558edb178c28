"""GET /v1/reports/summary - dashboard figures for the acting user's scope"""

from dataclasses import asdict
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from crediario.api.dependencies import get_request_context
from crediario.api.v1.errors import to_http_exception
from crediario.api.v1.schemas import ReportResponse
from crediario.application import operations
from crediario.application.context import RequestContext
from crediario.domain.exceptions import DomainException
from crediario.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/reports/summary", response_model=ReportResponse)
def get_summary(
    as_of: Optional[date] = Query(None, description="Reference date, defaults to today"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Portfolio summary: credit exposure, sales by status and collections.

    Masters see the whole tenant; other roles see their own sales and customers.
    """
    as_of = as_of or date.today()
    try:
        summary = operations.build_report(db, ctx, as_of)
    except DomainException as e:
        raise to_http_exception(e, ctx.request_id)

    return ReportResponse(as_of=as_of, **asdict(summary))
