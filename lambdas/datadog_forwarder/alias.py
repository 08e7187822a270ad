# lambdas/datadog_forwarder/alias.py
"""
Resolves a Lambda function version (e.g. `663`) to the aliases bound to it,
so log lines can be attributed to `/helix-services/indexer/v4` instead of a
bare version number.
"""
import re
from typing import Optional

from botocore.exceptions import NoCredentialsError, PartialCredentialsError

from .errors import ConfigurationError
from .models import AliasResolution

LATEST = "$LATEST"

SHORT_ALIAS = re.compile(r"^v\d+$")
VERSION_ALIAS = re.compile(r"^\d+_\d+_\d+$")
# Log stream names look like `2022/10/25/[663]877ef64aed7c456086d40a1de61a48cc`.
STREAM_REVISION = re.compile(r"\[(\$LATEST|\d+)\]")


class AliasCache:
    """
    Process-wide memo of (function name, version) -> AliasResolution.

    Created once per Lambda container and shared by warm invocations.
    Entries never expire: an alias set for a published version does not change.
    """

    def __init__(self):
        self._entries: dict[tuple[str, str], AliasResolution] = {}

    def get(self, unit: str, revision: str) -> Optional[AliasResolution]:
        return self._entries.get((unit, revision))

    def put(self, unit: str, revision: str, resolution: AliasResolution) -> None:
        self._entries[(unit, revision)] = resolution

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class AliasResolver:
    """Looks up aliases through the Lambda API, memoizing every answer in an AliasCache."""

    def __init__(self, lambda_client, cache: AliasCache, log=print):
        self.lambda_client = lambda_client
        self.cache = cache
        self.log = log

    def resolve(self, unit: str, revision: str) -> AliasResolution:
        if revision == LATEST:
            return AliasResolution()

        cached = self.cache.get(unit, revision)
        if cached is not None:
            return cached

        names = self._list_alias_names(unit, revision)
        resolution = select_aliases(names)
        self.cache.put(unit, revision, resolution)
        return resolution

    def _list_alias_names(self, unit: str, revision: str) -> list[str]:
        names = []
        try:
            paginator = self.lambda_client.get_paginator("list_aliases")
            for page in paginator.paginate(FunctionName=unit, FunctionVersion=revision):
                names.extend(alias["Name"] for alias in page.get("Aliases", []))
        except (NoCredentialsError, PartialCredentialsError) as e:
            raise ConfigurationError(f"Missing AWS configuration: {e}") from e
        self.log(f"Found {len(names)} alias(es) for {unit}:{revision}: {', '.join(names) or '-'}")
        return names


def select_aliases(names: list[str]) -> AliasResolution:
    """Picks the `vN` alias and the `major_minor_patch` alias (rewritten to dotted form) from `names`."""
    short_alias = next((n for n in names if SHORT_ALIAS.match(n)), None)
    version = next((n for n in names if VERSION_ALIAS.match(n)), None)
    return AliasResolution(
        short_alias=short_alias,
        version_tag=version.replace("_", ".") if version else None,
    )


def unit_name(log_group: str) -> str:
    """`/aws/lambda/helix-services--indexer` -> `helix-services--indexer`"""
    return log_group.rstrip("/").rsplit("/", 1)[-1]


def parse_revision(log_stream: str) -> Optional[str]:
    """Returns the version embedded in a log stream name, `$LATEST` included."""
    match = STREAM_REVISION.search(log_stream or "")
    return match.group(1) if match else None


def function_path(unit: str, revision: Optional[str], resolution: AliasResolution) -> str:
    """
    Builds the human readable function path, e.g. `/helix-services/indexer/v4`.
    Falls back from short alias, to version tag, to the raw version.
    """
    base = "/" + unit.replace("--", "/")
    if resolution.has_short_alias:
        suffix = resolution.short_alias
    elif resolution.has_version_tag:
        suffix = resolution.version_tag
    else:
        suffix = revision or LATEST
    return f"{base}/{suffix}"
