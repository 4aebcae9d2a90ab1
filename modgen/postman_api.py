# File: modgen/postman_api.py
"""
modgen - Postman API Client
============================
Thin synchronous client for the Postman collections API, built on
``httpx.Client``.

The remote collection holds one folder per module (``<Class> API``).  An
update replaces the generated requests of that folder and keeps any request
added by hand, then writes the whole collection back with a single PUT.

Every non-2xx response or transport failure raises ``PostmanApiError``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from modgen.models import GeneratorConfig, ModuleNames
from modgen.postman import merge_items

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("modgen.postman_api")

ALLOWED_VARIABLE_TYPES: frozenset = frozenset({"string", "secret", "boolean", "number", "any"})


class PostmanApiError(Exception):
    """A Postman API call failed; ``payload`` holds the upstream body if any."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code: Optional[int] = status_code
        self.payload: Any = payload


# ---------------------------------------------------------------------------
# Collection helpers
# ---------------------------------------------------------------------------


def sanitize_variables(collection: Dict[str, Any]) -> None:
    """
    Make ``collection["variable"]`` acceptable to the API, in place.

    Invalid or missing types become ``string``; entries without a key are
    dropped; an empty result removes the key altogether.
    """
    variables = collection.get("variable")
    if variables is None:
        logger.debug("No variables found in retrieved collection.")
        return

    valid: List[Dict[str, Any]] = []
    for var in variables if isinstance(variables, list) else []:
        if not isinstance(var, dict) or not var.get("key"):
            continue
        current = var.get("type")
        if not isinstance(current, str) or current.lower() not in ALLOWED_VARIABLE_TYPES:
            logger.debug(
                "Variable '%s' has invalid/missing type '%s'; using 'string'.",
                var.get("key"),
                current,
            )
            var = {**var, "type": "string"}
        valid.append(var)

    if valid:
        collection["variable"] = valid
    else:
        logger.debug("Removing empty/invalid variable array.")
        del collection["variable"]


def replace_module_folder(
    collection: Dict[str, Any],
    folder_name: str,
    items: List[Dict[str, Any]],
) -> bool:
    """
    Put *items* into the folder named *folder_name*, in place.

    Returns True when an existing folder was updated, False when a new
    folder was appended.
    """
    entries = collection.get("item")
    if not isinstance(entries, list):
        entries = []
        collection["item"] = entries

    for index, entry in enumerate(entries):
        if isinstance(entry, dict) and entry.get("name") == folder_name:
            logger.info("Updating existing folder: %s", folder_name)
            existing_items = entry.get("item") or []
            entries[index] = {**entry, "item": merge_items(items, existing_items)}
            return True

    logger.info("Adding new folder: %s", folder_name)
    entries.append({"name": folder_name, "item": list(items)})
    return False


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class PostmanApiClient:
    """
    Usage::

        with PostmanApiClient(api_key) as client:
            collection = client.fetch_collection(collection_id)

    Pass ``transport`` (e.g. ``httpx.MockTransport``) to stub the network.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.getpostman.com",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Postman API key is required.")
        self._client: httpx.Client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"X-Api-Key": api_key},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: GeneratorConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "PostmanApiClient":
        return cls(
            config.postman_api_key or "",
            base_url=config.postman_api_url,
            timeout=config.request_timeout,
            transport=transport,
        )

    # -- Lifecycle ----------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "PostmanApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- Transport ----------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response: httpx.Response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise PostmanApiError(f"{method} {path} failed: {exc}") from exc

        if not response.is_success:
            try:
                payload: Any = response.json()
            except ValueError:
                payload = response.text
            raise PostmanApiError(
                f"{method} {path} returned {response.status_code}: {payload}",
                status_code=response.status_code,
                payload=payload,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise PostmanApiError(
                f"{method} {path} returned a non-JSON body.",
                status_code=response.status_code,
                payload=response.text,
            ) from exc

    # -- Operations ---------------------------------------------------------

    def fetch_collection(self, collection_id: str) -> Dict[str, Any]:
        """GET the collection and return its ``collection`` object."""
        logger.info("Fetching collection from Postman API: %s", collection_id)
        data: Any = self._request("GET", f"/collections/{collection_id}")
        collection = data.get("collection") if isinstance(data, dict) else None
        if not isinstance(collection, dict):
            raise PostmanApiError(
                "Postman API response has no 'collection' object.", payload=data
            )
        return collection

    def update_module_folder(
        self,
        collection_id: str,
        names: ModuleNames,
        collection: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Replace the module's folder in the remote collection.

        *collection* is the locally generated module collection; its
        ``item`` list becomes the folder content.  Returns the collection
        that was sent.
        """
        remote: Dict[str, Any] = self.fetch_collection(collection_id)
        sanitize_variables(remote)
        replace_module_folder(
            remote, names.postman_folder_name, list(collection.get("item", []))
        )
        logger.info("Sending PUT request to Postman API...")
        self._request(
            "PUT", f"/collections/{collection_id}", json={"collection": remote}
        )
        logger.info("Postman collection updated successfully via API.")
        return remote


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ALLOWED_VARIABLE_TYPES",
    "PostmanApiError",
    "PostmanApiClient",
    "sanitize_variables",
    "replace_module_folder",
]

logger.debug("modgen.postman_api loaded.")
