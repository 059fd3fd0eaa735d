from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Client, Project


class ClientRepository(Protocol):
    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[Client]:
        raise NotImplementedError

    def get(self, company_id: str, client_id: str) -> Optional[Client]:
        raise NotImplementedError

    def get_by_name(self, company_id: str, company_name: str) -> Optional[Client]:
        raise NotImplementedError

    def create(self, *, company_id: str, fields: dict) -> str:
        raise NotImplementedError

    def update(self, company_id: str, client_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, client_id: str) -> bool:
        raise NotImplementedError


class ProjectRepository(Protocol):
    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[Project]:
        raise NotImplementedError

    def get(self, company_id: str, project_id: str) -> Optional[Project]:
        raise NotImplementedError

    def create(self, *, company_id: str, fields: dict) -> str:
        raise NotImplementedError

    def update(self, company_id: str, project_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, project_id: str) -> bool:
        raise NotImplementedError
