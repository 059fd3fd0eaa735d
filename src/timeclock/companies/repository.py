from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Company, CompanyFeatures, Department


class CompanyRepository(Protocol):
    def get(self, company_id: str) -> Optional[Company]:
        raise NotImplementedError

    def create(self, *, fields: dict) -> str:
        raise NotImplementedError

    def update(self, company_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def get_features(self, company_id: str) -> Optional[CompanyFeatures]:
        raise NotImplementedError

    def save_features(self, features: CompanyFeatures) -> None:
        raise NotImplementedError


class DepartmentRepository(Protocol):
    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[Department]:
        raise NotImplementedError

    def get(self, company_id: str, department_id: str) -> Optional[Department]:
        raise NotImplementedError

    def get_by_name(self, company_id: str, name: str) -> Optional[Department]:
        raise NotImplementedError

    def create(self, *, company_id: str, name: str, description: Optional[str]) -> str:
        raise NotImplementedError

    def update(self, company_id: str, department_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, department_id: str) -> bool:
        raise NotImplementedError
