from typing import Any

import httpx

from regforms.config.settings import Settings
from regforms.directory.exceptions import DirectoryServiceError
from regforms.directory.mapping import map_submission
from regforms.directory.models import CreatedRecord, DirectoryRecord, parse_record_id
from regforms.documents.models import Submission
from regforms.logging.logger import Log


def _sql_literal(value: str) -> str:
    return value.replace("'", "")


class DolibarrClient:
    """Third-party directory client over the Dolibarr REST API.

    Every public operation is best-effort: failures are logged and reported
    as ``None`` (or ``False``). When the integration is disabled or no API key
    is configured, operations return immediately without network access.
    """

    SEARCH_LIMIT = 5

    def __init__(
        self,
        *,
        enabled: bool,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._enabled = enabled
        self._api_key = api_key
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "DOLAPIKEY": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "DolibarrClient":
        return cls(
            enabled=settings.dolibarr_enabled,
            base_url=settings.dolibarr_api_url,
            api_key=settings.dolibarr_api_key,
            timeout_seconds=settings.dolibarr_timeout_seconds,
        )

    @property
    def active(self) -> bool:
        return self._enabled and bool(self._api_key)

    def close(self) -> None:
        self._client.close()

    def search_by_national_id(self, national_id: str) -> DirectoryRecord | None:
        if not self.active or not national_id:
            return None
        try:
            return self._search_by_filter(f"(s.idprof5:=:'{_sql_literal(national_id)}')")
        except DirectoryServiceError as exc:
            Log.warning(f"[Dolibarr] CIN search failed: {exc}")
            return None

    def search_by_tax_id(
        self, tax_id: str, fallback_name: str | None = None
    ) -> DirectoryRecord | None:
        if not self.active or not tax_id:
            return None
        try:
            return self._search_by_filter(f"(s.idprof2:=:'{_sql_literal(tax_id)}')")
        except DirectoryServiceError as exc:
            if not fallback_name:
                Log.warning(f"[Dolibarr] NIF search failed: {exc}")
                return None
            Log.warning(f"[Dolibarr] NIF search failed ({exc}), trying name search")
        return self.search_by_name(fallback_name)

    def search_by_name(self, name: str) -> DirectoryRecord | None:
        """Prefer a case-insensitive exact match, else the first candidate."""
        if not self.active or not name:
            return None
        try:
            results = self._request(
                "GET", "/thirdparties", params={"name": name, "limit": self.SEARCH_LIMIT}
            )
            candidates = [DirectoryRecord.from_payload(item) for item in self._as_list(results)]
        except DirectoryServiceError as exc:
            Log.warning(f"[Dolibarr] Name search failed: {exc}")
            return None

        wanted = name.casefold()
        for candidate in candidates:
            if candidate.name.casefold() == wanted:
                return candidate
        return candidates[0] if candidates else None

    def create_record(self, submission: Submission, reference: str) -> CreatedRecord | None:
        """Create a third party for the submission and read back its client code."""
        if not self._enabled:
            Log.info("[Dolibarr] Integration disabled, skipping client creation")
            return None
        if not self._api_key:
            Log.error("[Dolibarr] API key not configured, skipping client creation")
            return None

        payload = map_submission(submission, reference)
        Log.info(
            f"[Dolibarr] Creating third party for {submission.kind.value}: {payload['name']}"
        )
        try:
            record_id = parse_record_id(self._request("POST", "/thirdparties", json=payload))
        except DirectoryServiceError as exc:
            Log.error(f"[Dolibarr] Failed to create third party: {exc}")
            return None

        client_code: str | None = None
        try:
            record = DirectoryRecord.from_payload(self._request("GET", f"/thirdparties/{record_id}"))
            client_code = record.client_code
        except DirectoryServiceError as exc:
            Log.warning(f"[Dolibarr] Could not fetch code_client: {exc}")

        Log.info(
            f"[Dolibarr] Third party created (ID: {record_id}, code: {client_code})",
            reference=reference,
        )
        return CreatedRecord(id=record_id, client_code=client_code)

    def check_connection(self) -> bool:
        if not self.active:
            return False
        try:
            self._request("GET", "/status")
        except DirectoryServiceError as exc:
            Log.error(f"[Dolibarr] Connection check failed: {exc}")
            return False
        Log.info("[Dolibarr] Connection check: OK")
        return True

    def _search_by_filter(self, sqlfilters: str) -> DirectoryRecord | None:
        results = self._request(
            "GET",
            "/thirdparties",
            params={"sqlfilters": sqlfilters, "limit": self.SEARCH_LIMIT},
        )
        items = self._as_list(results)
        if not items:
            return None
        return DirectoryRecord.from_payload(items[0])

    @staticmethod
    def _as_list(results: Any) -> list[Any]:
        if isinstance(results, list):
            return results
        raise DirectoryServiceError(f"Expected a list of third parties, got: {results!r}")

    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = self._client.request(method, endpoint, params=params, json=json)
        except httpx.TimeoutException as exc:
            raise DirectoryServiceError(f"Dolibarr API request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DirectoryServiceError(f"Dolibarr API connection error: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise DirectoryServiceError(
                f"Dolibarr API invalid response ({response.status_code}): {response.text}"
            ) from exc

        if not response.is_success:
            raise DirectoryServiceError(f"Dolibarr API error ({response.status_code}): {body}")
        return body
