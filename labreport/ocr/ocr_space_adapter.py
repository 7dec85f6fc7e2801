from pathlib import Path

import httpx

from labreport.ocr.base import BaseOcrClient
from labreport.ocr.exceptions import OcrError, OcrNetworkError
from labreport.recovery.models import Page


class OcrSpaceAdapter(BaseOcrClient):
    """OCR client for the OCR.space parse API."""

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        timeout_seconds: int,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._client = httpx.Client(
            timeout=timeout_seconds,
            headers={"apikey": api_key},
            transport=transport,
        )

    def recognize(self, path: Path, language: str) -> list[Page]:
        form = {
            "language": language,
            "OCREngine": "2",
            "scale": "true",
            "detectOrientation": "true",
            "isCreateSearchablePdf": "false",
        }
        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    self._api_url,
                    data=form,
                    files={"file": (path.name, handle, "application/pdf")},
                )
            response.raise_for_status()
            payload = response.json()
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise OcrNetworkError(f"OCR service network error: {exc}") from exc
        except httpx.HTTPError as exc:
            raise OcrError(f"OCR service HTTP error: {exc}") from exc
        except ValueError as exc:
            raise OcrError(f"OCR service returned invalid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise OcrError(f"OCR service returned unexpected payload: {payload!r:.200}")

        results = payload.get("ParsedResults") or []
        if not results:
            error = payload.get("ErrorMessage") or "no parsed results"
            if isinstance(error, list):
                error = "; ".join(str(item) for item in error)
            raise OcrError(f"OCR service error: {error}")

        return [
            Page(identifier=f"Section {index}", text=result.get("ParsedText") or "")
            for index, result in enumerate(results, start=1)
            if isinstance(result, dict)
        ]
