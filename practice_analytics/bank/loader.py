"""
Question Bank Loader.

Loads one class's question bank JSON, normalizes it and keeps it in a
process-wide cache. Banks are read from a local directory or, when a base URL
is configured, fetched over HTTP.

Usage:
    loader = QuestionBankLoader.from_settings()
    class_data = await loader.load("AP Calculus BC")
    units = await loader.get_unit_names("AP Calculus BC")
"""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Iterable

import httpx
from loguru import logger

from config import Settings, get_settings
from practice_analytics.bank.models import ClassData, Question
from practice_analytics.bank.normalize import normalize_class_data
from practice_analytics.exceptions import QuestionBankError


def class_filename(class_name: str) -> str:
    """Convert a class name to its bank filename ("AP Calculus BC" -> "AP_Calculus_BC.json")."""
    return re.sub(r"[^a-zA-Z0-9]", "_", class_name) + ".json"


# =============================================================================
# Cache
# =============================================================================


class QuestionBankCache:
    """
    In-memory cache of normalized question banks keyed by class name.

    Lives for the lifetime of the process, not of an analytics computation.
    Callers that need fresh data call `invalidate()` or `clear()` explicitly.
    """

    def __init__(self) -> None:
        self._banks: dict[str, ClassData] = {}

    def get(self, class_name: str) -> ClassData | None:
        return self._banks.get(class_name)

    def set(self, class_name: str, class_data: ClassData) -> None:
        self._banks[class_name] = class_data

    def invalidate(self, class_name: str) -> None:
        """Drop a single class from the cache."""
        self._banks.pop(class_name, None)

    def clear(self) -> None:
        """Drop every cached class."""
        self._banks.clear()

    def __contains__(self, class_name: object) -> bool:
        return class_name in self._banks

    def __len__(self) -> int:
        return len(self._banks)


default_cache = QuestionBankCache()


# =============================================================================
# Loader
# =============================================================================


class QuestionBankLoader:
    """
    Load question banks from a directory or an HTTP endpoint.

    Handles:
    - Check-then-populate caching
    - Legacy shape normalization (via bank.normalize)
    - Failure isolation: any fetch/parse error yields None, never an exception
    """

    def __init__(
        self,
        bank_dir: Path | None = None,
        base_url: str | None = None,
        cache: QuestionBankCache | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the loader.

        Args:
            bank_dir: Directory holding <Class_Name>.json files
            base_url: HTTP base URL serving the same filenames (takes precedence)
            cache: Cache instance (defaults to the process-wide cache)
            timeout: HTTP timeout in seconds
        """
        self.bank_dir = Path(bank_dir) if bank_dir else Path("data/question_banks")
        self.base_url = base_url.rstrip("/") if base_url else None
        self.cache = cache if cache is not None else default_cache
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "QuestionBankLoader":
        settings = settings or get_settings()
        return cls(
            bank_dir=settings.question_bank_dir,
            base_url=settings.question_bank_url,
            timeout=settings.question_bank_timeout_seconds,
        )

    async def load(self, class_name: str, refresh: bool = False) -> ClassData | None:
        """
        Load class data, serving from cache when possible.

        Args:
            class_name: Name of the class (e.g., "AP Biology")
            refresh: Invalidate any cached copy first

        Returns:
            Normalized ClassData, or None if the bank is unavailable
        """
        if refresh:
            self.cache.invalidate(class_name)

        cached = self.cache.get(class_name)
        if cached is not None:
            logger.debug(f"Using cached question bank for {class_name} ({len(cached.units)} units)")
            return cached

        try:
            raw = await self._fetch(class_name)
            class_data = normalize_class_data(raw, class_name)
        except QuestionBankError as e:
            logger.error(str(e))
            return None
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Malformed question bank for {class_name}: {e}")
            return None

        self.cache.set(class_name, class_data)
        logger.info(
            f"Loaded {len(class_data.units)} units with {class_data.question_count} "
            f"questions for {class_name}"
        )
        return class_data

    async def _fetch(self, class_name: str) -> Any:
        filename = class_filename(class_name)
        if self.base_url:
            return await self._fetch_http(class_name, filename)
        return await asyncio.to_thread(self._read_file, class_name, self.bank_dir / filename)

    async def _fetch_http(self, class_name: str, filename: str) -> Any:
        url = f"{self.base_url}/{filename}"
        logger.debug(f"Fetching question bank {url}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers={"Cache-Control": "no-store"})
        except httpx.RequestError as e:
            raise QuestionBankError(class_name, f"connection error: {e}") from e

        if response.status_code != 200:
            raise QuestionBankError(class_name, f"HTTP {response.status_code} for {url}")
        try:
            return response.json()
        except ValueError as e:
            raise QuestionBankError(class_name, f"invalid JSON: {e}") from e

    @staticmethod
    def _read_file(class_name: str, path: Path) -> Any:
        if not path.exists():
            raise QuestionBankError(class_name, f"file not found: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise QuestionBankError(class_name, f"could not read {path}: {e}") from e

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_unit_names(self, class_name: str) -> list[str]:
        class_data = await self.load(class_name)
        if class_data is None:
            return []
        return [u.unit_name for u in class_data.units]

    async def get_subtopic_names(self, class_name: str, unit_name: str) -> list[str]:
        class_data = await self.load(class_name)
        if class_data is None:
            return []
        for unit in class_data.units:
            if unit.unit_name == unit_name:
                return [s.subtopic_name for s in unit.subtopics]
        return []

    async def get_questions_for_subtopic(
        self, class_name: str, unit_name: str, subtopic_name: str
    ) -> list[Question]:
        class_data = await self.load(class_name)
        if class_data is None:
            return []
        for unit in class_data.units:
            if unit.unit_name != unit_name:
                continue
            for subtopic in unit.subtopics:
                if subtopic.subtopic_name == subtopic_name:
                    return list(subtopic.questions)
        return []

    async def get_questions_for_unit(self, class_name: str, unit_name: str) -> list[Question]:
        """Get all questions for a unit, across its subtopics."""
        class_data = await self.load(class_name)
        if class_data is None:
            return []

        unit = next((u for u in class_data.units if u.unit_name == unit_name), None)
        if unit is None:
            logger.warning(
                f"Unit {unit_name!r} not found for {class_name}. "
                f"Available units: {[u.unit_name for u in class_data.units]}"
            )
            return []
        return [q for subtopic in unit.subtopics for q in subtopic.questions]

    async def get_question_by_id(
        self, question_id: str, class_names: Iterable[str]
    ) -> Question | None:
        """Find a question by its id, searching the given classes in order."""
        for class_name in class_names:
            class_data = await self.load(class_name)
            if class_data is None:
                continue
            for unit in class_data.units:
                for subtopic in unit.subtopics:
                    for question in subtopic.questions:
                        if question.id == question_id:
                            return question
        return None
