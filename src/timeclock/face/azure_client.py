from __future__ import annotations

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15  # seconds


class FaceApiError(Exception):
    pass


class AzureFaceClient:
    """Minimal client for the Azure Face detect/verify REST endpoints."""

    def __init__(self, endpoint: str, key: str, *, session: Optional[requests.Session] = None):
        self._endpoint = endpoint.rstrip("/")
        self._key = key
        self._session = session or requests.Session()

    def _post(self, path: str, payload: dict, params: Optional[dict] = None):
        try:
            response = self._session.post(
                f"{self._endpoint}/face/v1.0/{path}",
                json=payload,
                params=params,
                headers={"Ocp-Apim-Subscription-Key": self._key},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise FaceApiError(f"Face API request failed: {exc}") from exc
        if not response.ok:
            raise FaceApiError(f"Face API {path} returned {response.status_code}: {response.text[:200]}")
        return response.json()

    def detect(self, image_url: str) -> Optional[str]:
        """Return the face id of the first face in the image, or None."""
        faces = self._post(
            "detect",
            {"url": image_url},
            params={"returnFaceId": "true", "recognitionModel": "recognition_04", "detectionModel": "detection_03"},
        )
        if not faces:
            return None
        return faces[0].get("faceId")

    def verify(self, face_id1: str, face_id2: str) -> tuple[bool, float]:
        result = self._post("verify", {"faceId1": face_id1, "faceId2": face_id2})
        return bool(result.get("isIdentical")), float(result.get("confidence") or 0.0)


def build_face_client(settings) -> Optional[AzureFaceClient]:
    endpoint = getattr(settings, "AZURE_FACE_ENDPOINT", None)
    key = getattr(settings, "AZURE_FACE_KEY", None)
    if endpoint and key:
        return AzureFaceClient(endpoint, key)
    logger.info("Azure Face is not configured; server-side photo comparison disabled")
    return None
