"""
Record CRUD façade.

Thin per-entity operations over a Provider. Every call is a single
request/response; nothing is cached between calls.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel

from .errors import ProviderError
from .models import (
    Company,
    CompanyCustomField,
    CustomAnalysisField,
    EntrySheet,
    HiddenAnalysisField,
    SelectionStep,
    Task,
    Template,
    UserProfile,
)
from .provider import IMAGE_BUCKET, Provider

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Table(Generic[M]):
    """list/get/insert/update/delete for one record collection."""

    def __init__(self, provider: Provider, name: str, model: Type[M], touch: bool = False):
        self.provider = provider
        self.name = name
        self.model = model
        self.touch = touch

    def _model(self, row: Mapping[str, Any], operation: str) -> M:
        try:
            return self.model.model_validate(row)
        except pydantic.ValidationError as e:
            logger.error("Malformed %s row from %s: %s", self.name, operation, e)
            raise ProviderError(
                f"Unexpected {self.name} row: {e.error_count()} invalid field(s)", self.name, operation
            ) from e

    def list(
        self,
        order_by: Optional[str] = None,
        ascending: bool = True,
        **filters: Any,
    ) -> List[M]:
        rows = self.provider.select(self.name, filters, order_by=order_by, ascending=ascending)
        return [self._model(row, "select") for row in rows]

    def get(self, row_id: str) -> Optional[M]:
        rows = self.provider.select(self.name, {"id": row_id})
        if not rows:
            return None
        return self._model(rows[0], "select")

    def insert(self, fields: Mapping[str, Any]) -> M:
        return self._model(self.provider.insert(self.name, fields), "insert")

    def update(self, row_id: str, fields: Mapping[str, Any]) -> Optional[M]:
        """Update a single row by id. Returns the stored row, if visible."""
        values: Dict[str, Any] = dict(fields)
        if self.touch:
            values.setdefault("updated_at", datetime.now(timezone.utc))
        rows = self.provider.update(self.name, {"id": row_id}, values)
        if not rows:
            return None
        return self._model(rows[0], "update")

    def delete(self, row_id: str) -> None:
        self.provider.delete(self.name, {"id": row_id})

    def delete_where(self, **filters: Any) -> None:
        self.provider.delete(self.name, filters)


class Repository:
    """All record collections of the tracker, bound to one provider."""

    def __init__(self, provider: Provider):
        self.provider = provider
        self.companies = Table(provider, "companies", Company, touch=True)
        self.tasks = Table(provider, "tasks", Task)
        self.selection_steps = Table(provider, "selection_steps", SelectionStep)
        self.entry_sheets = Table(provider, "entry_sheets", EntrySheet, touch=True)
        self.templates = Table(provider, "templates", Template, touch=True)
        self.custom_analysis_fields = Table(provider, "custom_analysis_fields", CustomAnalysisField)
        self.company_custom_fields = Table(provider, "company_custom_fields", CompanyCustomField)
        self.hidden_analysis_fields = Table(provider, "hidden_analysis_fields", HiddenAnalysisField)
        self.user_profiles = Table(provider, "user_profiles", UserProfile, touch=True)

    # ============ Companies ============

    def list_companies(self, user_id: str) -> List[Company]:
        """Companies of a user, newest first."""
        return self.companies.list(order_by="created_at", ascending=False, user_id=user_id)

    def replace_company_image(
        self,
        user_id: str,
        company: Company,
        file_name: str,
        data: bytes,
        content_type: str,
    ) -> str:
        """Delete the current image (if any), upload the new one, return its URL.

        The new URL is returned rather than saved; the page stores it with the
        rest of the edit form.
        """
        ext = file_name.rsplit(".", 1)[-1] if "." in file_name else "bin"
        stamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        path = f"{user_id}/{company.id}-{stamp}.{ext}"

        if company.image_url:
            old_path = "/".join(company.image_url.replace("\\", "/").split("/")[-2:])
            self.provider.remove(IMAGE_BUCKET, [old_path])

        self.provider.upload(IMAGE_BUCKET, path, data, content_type)
        return self.provider.public_url(IMAGE_BUCKET, path)

    # ============ Selection steps ============

    def list_steps(self, company_id: str) -> List[SelectionStep]:
        return self.selection_steps.list(order_by="order_index", company_id=company_id)

    def swap_step_order(self, first: SelectionStep, second: SelectionStep) -> None:
        """Swap two steps' order_index with two concurrent updates.

        Both updates are always awaited. If either fails a ProviderError is
        raised; nothing is rolled back, callers re-read the step list.
        """
        with ThreadPoolExecutor(max_workers=2) as pool:
            futures = [
                pool.submit(self.selection_steps.update, first.id, {"order_index": second.order_index}),
                pool.submit(self.selection_steps.update, second.id, {"order_index": first.order_index}),
            ]
            errors = [f.exception() for f in futures if f.exception() is not None]

        if errors:
            logger.error("Reordering steps %s/%s failed: %s", first.id, second.id, errors)
            raise ProviderError(str(errors[0]), "selection_steps", "update") from errors[0]

    # ============ Analysis fields ============

    def custom_values(self, company_id: str) -> Dict[str, str]:
        rows = self.company_custom_fields.list(company_id=company_id)
        return {row.field_key: row.value for row in rows}

    def save_custom_values(self, company_id: str, values: Mapping[str, str]) -> None:
        """Insert or update one company_custom_fields row per key."""
        for field_key, value in values.items():
            existing = self.company_custom_fields.list(company_id=company_id, field_key=field_key)
            if existing:
                self.company_custom_fields.update(existing[0].id, {"value": value})
            else:
                self.company_custom_fields.insert(
                    {"company_id": company_id, "field_key": field_key, "value": value}
                )

    def hidden_field_keys(self, user_id: str) -> set:
        return {row.field_key for row in self.hidden_analysis_fields.list(user_id=user_id)}

    # ============ Profiles ============

    def ensure_profile(self, user_id: str) -> UserProfile:
        """Return the user's profile, creating an empty one on first visit."""
        profile = self.user_profiles.get(user_id)
        if profile is None:
            profile = self.user_profiles.insert(
                {"id": user_id, "full_name": "", "university": "", "department": "", "graduation_year": None}
            )
        return profile
