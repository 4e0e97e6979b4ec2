"""Geri bildirim - hata bildirimi, özellik istekleri ve oylama."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Any, Optional

from marketmate.errors import MarketMateError, RecordNotFoundError
from marketmate.models.market import BugReport, FeatureRequest
from marketmate.services.base_service import BaseService
from marketmate.services.validation import EntryValidator

logger = logging.getLogger(__name__)


class FeedbackService(BaseService):
    def __init__(self, *args: Any, validator: Optional[EntryValidator] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.validator = validator or EntryValidator()
        self.feature_requests: list[FeatureRequest] = []

    def submit_bug(self, description: str) -> bool:
        self.error_message = None
        try:
            self.validator.validate_required(description, "Açıklama").raise_if_invalid()
            user_id = self.session.require_user_id()
            bug = BugReport(bug_id=str(uuid.uuid4()), user_id=user_id, description=description.strip())
            self.is_loading = True
            self.store.put_bug(bug)
        except MarketMateError as e:
            self._fail("Hata bildirimi gönderilemedi", e)
            return False
        finally:
            self.is_loading = False
        logger.info("Hata bildirimi gönderildi: %s", bug.bug_id)
        return True

    def fetch_feature_requests(self) -> list[FeatureRequest]:
        """Açık özellik isteklerini alır; oturum varsa kullanıcının oyları işaretlenir."""
        self.is_loading = True
        try:
            features = self.store.fetch_feature_requests()
            voted: set[str] = set()
            if self.session.is_authenticated:
                voted = self.store.fetch_voted_feature_ids(self.session.require_user_id())
        except MarketMateError as e:
            self._fail("Özellik istekleri alınamadı", e)
            return self.feature_requests
        finally:
            self.is_loading = False

        for feature in features:
            feature.has_voted = feature.feature_id in voted
        self.feature_requests = features
        logger.info("%d özellik isteği alındı", len(features))
        return self.feature_requests

    def submit_feature_request(self, title: str, description: str) -> Optional[FeatureRequest]:
        self.error_message = None
        try:
            self.validator.validate_required(title, "Başlık").raise_if_invalid()
            user_id = self.session.require_user_id()
            feature = FeatureRequest(
                feature_id=str(uuid.uuid4()),
                user_id=user_id,
                title=title.strip(),
                description=(description or "").strip(),
            )
            self.store.put_feature_request(feature)
        except MarketMateError as e:
            self._fail("Özellik isteği gönderilemedi", e)
            return None
        logger.info("Özellik isteği gönderildi: %s", feature.title)
        self.fetch_feature_requests()
        return feature

    def toggle_vote(self, feature_id: str) -> bool:
        """Oyu önce yerelde değiştirir, sonra depoya yazar.

        Başarılı olursa liste depodan yenilenir ve sunucudaki sayaç geçerli
        olur; hata olursa yerel değer eski haline döner.
        """
        self.error_message = None
        index = next(
            (i for i, f in enumerate(self.feature_requests) if f.feature_id == feature_id), None
        )
        try:
            user_id = self.session.require_user_id()
            if index is None:
                raise RecordNotFoundError("toggle_vote", f"Özellik isteği bulunamadı: {feature_id}")
        except MarketMateError as e:
            self._fail("Oy verilemedi", e)
            return False

        previous = self.feature_requests[index]
        already_voted = bool(previous.has_voted)
        self.feature_requests[index] = dataclasses.replace(
            previous,
            has_voted=not already_voted,
            votes=max(0, previous.votes + (-1 if already_voted else 1)),
        )

        try:
            self.store.set_feature_vote(feature_id, user_id, voted=not already_voted)
        except MarketMateError as e:
            self.feature_requests[index] = previous
            self._fail("Oy verilemedi", e)
            return False

        logger.info("Oy %s: %s", "geri alındı" if already_voted else "verildi", previous.title)
        self.fetch_feature_requests()
        return True
