"""Contract sources: where the pacts to verify come from."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

import requests
from pydantic import BaseModel, ConfigDict, Field

from pact_provider_runtime.expressions import parse_expression, parse_list_expression
from pact_provider_runtime.schema import (
    ConfigurationError,
    Contract,
    ContractSourceError,
    load_contract_file,
    parse_contract,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class ContractSource(Protocol):
    """Supplies the ordered contracts to verify."""

    def retrieve(self) -> list[Contract]: ...


# ---------------------------------------------------------------------------
# In-memory and file system sources
# ---------------------------------------------------------------------------

class StaticContractSource:
    """Contracts already loaded in memory."""

    name = "static"

    def __init__(self, contracts: Iterable[Contract]) -> None:
        self._contracts = list(contracts)

    def retrieve(self) -> list[Contract]:
        return list(self._contracts)


class FolderContractSource:
    """Pact JSON files from a folder (sorted by file name) or a single file."""

    name = "folder"

    def __init__(self, path: Path | str, provider: str | None = None) -> None:
        self.path = Path(path)
        self.provider = provider

    def _files(self) -> list[Path]:
        if self.path.is_file():
            return [self.path]
        if not self.path.is_dir():
            raise ContractSourceError(f"Contracts folder not found: {self.path}")
        return sorted(self.path.glob("*.json"))

    def retrieve(self) -> list[Contract]:
        contracts: list[Contract] = []
        for pact_file in self._files():
            contract = load_contract_file(pact_file)
            if self.provider and contract.provider.name != self.provider:
                logger.debug(
                    "Skipping %s: provider %s is not %s",
                    pact_file, contract.provider.name, self.provider,
                )
                continue
            contracts.append(contract)
        return contracts


class CompositeContractSource:
    """Concatenates several sources, preserving their order."""

    name = "composite"

    def __init__(self, sources: Iterable[ContractSource]) -> None:
        self.sources = list(sources)

    def retrieve(self) -> list[Contract]:
        contracts: list[Contract] = []
        for source in self.sources:
            contracts.extend(source.retrieve())
        return contracts


# ---------------------------------------------------------------------------
# Pact broker
# ---------------------------------------------------------------------------

class BrokerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1)
    username: str = ""
    password: str = ""
    tags: list[str] = Field(default_factory=list)

    @classmethod
    def from_mapping(cls, configuration: Mapping[str, Any]) -> BrokerSettings:
        """Build settings from ``url``/``username``/``password``/``tags`` keys."""
        if "url" not in configuration:
            raise ConfigurationError("To use the pact broker source you need to set url of the broker")
        url = configuration["url"]
        if not isinstance(url, str):
            raise ConfigurationError(
                f"Pact broker source requires url configuration property to be a string "
                f"instead of {url!r}"
            )

        tags_value = configuration.get("tags") or []
        if isinstance(tags_value, str):
            tags = tags_value.split(",")
        elif isinstance(tags_value, (list, tuple)):
            tags = [str(tag) for tag in tags_value]
        else:
            raise ConfigurationError(f"Pact broker tags must be a string or a list, got {tags_value!r}")

        return cls(
            url=url,
            username=str(configuration.get("username") or ""),
            password=str(configuration.get("password") or ""),
            tags=tags,
        )


class BrokerContractSource:
    """Latest pacts of a provider from a pact broker, optionally per tag."""

    name = "pactbroker"

    def __init__(
        self,
        provider: str | None = None,
        settings: BrokerSettings | None = None,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.session = session or requests.Session()
        self.timeout = timeout

    def configure(self, configuration: Mapping[str, Any]) -> None:
        self.settings = BrokerSettings.from_mapping(configuration)

    @staticmethod
    def _auth(settings: BrokerSettings) -> tuple[str, str] | None:
        username = parse_expression(settings.username).strip()
        password = parse_expression(settings.password).strip()
        if not username or not password:
            return None
        return username, password

    @staticmethod
    def _tags(settings: BrokerSettings) -> list[str]:
        tags: list[str] = []
        for tag in settings.tags:
            tags.extend(parse_list_expression(tag))
        return tags

    def _get_json(self, url: str, auth: tuple[str, str] | None) -> dict[str, Any] | None:
        try:
            response = self.session.get(
                url,
                auth=auth,
                headers={"Accept": "application/hal+json, application/json"},
                timeout=self.timeout,
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            document = response.json()
        except requests.RequestException as exc:
            raise ContractSourceError(f"Pact broker request failed for {url}: {exc}") from exc
        except ValueError as exc:
            raise ContractSourceError(f"Pact broker returned invalid JSON for {url}: {exc}") from exc
        if not isinstance(document, dict):
            raise ContractSourceError(f"Pact broker returned a non-object document for {url}")
        return document

    def _pact_links(self, base_url: str, tag: str | None, auth: tuple[str, str] | None) -> list[str]:
        latest = f"{base_url}/pacts/provider/{self.provider}/latest"
        if tag:
            latest = f"{latest}/{tag}"
        document = self._get_json(latest, auth)
        if document is None:
            logger.warning("No pacts found for provider %s (tag=%s)", self.provider, tag)
            return []
        links = document.get("_links") or {}
        if not isinstance(links, dict):
            raise ContractSourceError(f"Pact broker returned malformed _links for {latest}")
        entries = links.get("pb:pacts") or links.get("pacts") or []
        return [entry["href"] for entry in entries if isinstance(entry, dict) and entry.get("href")]

    def retrieve(self) -> list[Contract]:
        if self.settings is None:
            raise ConfigurationError("Pact broker source is not configured; call configure() first")
        if not self.provider:
            raise ConfigurationError("Pact broker source requires a provider name")

        base_url = parse_expression(self.settings.url).rstrip("/")
        tags = self._tags(self.settings)
        auth = self._auth(self.settings)

        hrefs: list[str] = []
        for tag in tags or [None]:
            hrefs.extend(self._pact_links(base_url, tag, auth))

        contracts: list[Contract] = []
        for href in hrefs:
            document = self._get_json(href, auth)
            if document is None:
                raise ContractSourceError(f"Pact listed by the broker is missing: {href}")
            contracts.append(parse_contract(document, origin=href))
        logger.info("Retrieved %d pact(s) for %s from %s", len(contracts), self.provider, base_url)
        return contracts
