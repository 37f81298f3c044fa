"""
Database schema and engine factory (SQLAlchemy Core).

Result arrays are stored as JSON text on the owning row:
  audit_pages.checks_json     one array per page
  audits.site_checks_json     one array per audit (site scope)
  audits.composite_json       the composite output for the audit
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    func,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL

metadata = MetaData()

scoring_criteria = Table(
    "scoring_criteria",
    metadata,
    Column("id", String(100), primary_key=True),
    Column("label", String(255), nullable=False),
    Column("scope", String(10), nullable=False),
    Column("check_type", String(20), nullable=False, default="html_dom"),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("preview", Boolean, nullable=False, default=False),
    Column("weight", Float, nullable=False, default=1.0),
    Column("pass_threshold", Float, nullable=False, default=85.0),
    Column("warn_threshold", Float, nullable=False, default=60.0),
    Column("display_order", Integer),
    Column("category", String(100), nullable=False, default=""),
    Column("description", Text, nullable=False, default=""),
    Column("impact", String(10), nullable=False, default="Medium"),
    Column("version", Integer, nullable=False, default=1),
    Column("updated_at", DateTime, server_default=func.now(), onupdate=func.now()),
)

audits = Table(
    "audits",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("domain", String(255), nullable=False),
    Column("homepage_url", String(2048), nullable=False, default=""),
    Column("target_locale", String(20)),
    Column("site_checks_json", Text),
    Column("composite_json", Text),
    Column("created_at", DateTime, server_default=func.now()),
)

audit_pages = Table(
    "audit_pages",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("audit_id", String(64), ForeignKey("audits.id"), nullable=False, index=True),
    Column("url", String(2048), nullable=False),
    Column("html_static", Text),
    Column("html_rendered", Text),
    Column("checks_json", Text),
    Column("created_at", DateTime, server_default=func.now()),
)


def make_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    url = url or DATABASE_URL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # A private in-memory database must be one shared connection.
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, future=True, **kwargs)
    return create_engine(url, echo=echo, future=True, pool_pre_ping=True)


def init_db(engine: Engine) -> None:
    metadata.create_all(engine)
