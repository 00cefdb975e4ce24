"""Tenant company metadata lookup."""

from __future__ import annotations

from typing import Protocol

from ops_chat.db.pool import ConnectionPool
from ops_chat.types import CompanyInfo


class CompanyDirectory(Protocol):
    def get_company_info(self, tenant_id: str) -> CompanyInfo | None:
        """Return the tenant's company record, or None when unknown."""


class InMemoryCompanyDirectory:
    def __init__(self, companies: dict[str, CompanyInfo] | None = None) -> None:
        self._companies = dict(companies or {})

    def get_company_info(self, tenant_id: str) -> CompanyInfo | None:
        return self._companies.get(tenant_id)


class PgCompanyDirectory:
    _SQL = """
        SELECT name, display_name, industry, description
        FROM companies
        WHERE id = %s
        LIMIT 1
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get_company_info(self, tenant_id: str) -> CompanyInfo | None:
        rows = self._pool.fetch_all(self._SQL, (tenant_id,))
        if not rows:
            return None
        name, display_name, industry, description = rows[0]
        return CompanyInfo(
            name=name,
            display_name=display_name,
            industry=industry,
            description=description,
        )


def format_company_info(info: CompanyInfo) -> str:
    lines = [f"Your company is **{info.display_name or info.name}**."]
    if info.display_name and info.display_name != info.name:
        lines.append(f"• Registered name: {info.name}")
    if info.industry:
        lines.append(f"• Industry: {info.industry}")
    if info.description:
        lines.append(f"• About: {info.description}")
    return "\n".join(lines)
