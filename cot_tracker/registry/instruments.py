"""Tracked instruments: market key -> CFTC contract code + display label."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from cot_tracker.common.contract_codes import is_valid_contract_code, normalize_contract_code
from cot_tracker.common.errors import ConfigError
from cot_tracker.common.logging import get_logger
from cot_tracker.common.paths import series_file_stem


@dataclass(frozen=True)
class InstrumentConfig:
    name: str
    provider_code: str
    display_name: str


def storage_name_clashes(names: list[str]) -> list[tuple[str, str]]:
    """
    Pairs of distinct names that would share one series in a store.

    Worksheet titles compare case-insensitively and CSV file names go through
    `series_file_stem`, so "GOLD"/"Gold" and "S&P 500"/"S/P 500" both clash.
    """
    clashes = []
    seen: dict[str, str] = {}
    for name in dict.fromkeys(names):
        for key in (f"title:{name.casefold()}", f"file:{series_file_stem(name).casefold()}"):
            other = seen.setdefault(key, name)
            if other != name and (other, name) not in clashes:
                clashes.append((other, name))
    return clashes


class InstrumentRegistry:
    """
    Ordered, read-only set of instruments for one pipeline.

    Adding an instrument never mutates an existing registry: `with_instrument`
    hands back a new one, so a pipeline built from a registry keeps the set
    it was constructed with.
    """

    def __init__(self, instruments: list[InstrumentConfig] | tuple[InstrumentConfig, ...] = ()):
        self._instruments: tuple[InstrumentConfig, ...] = tuple(instruments)
        names = [i.name for i in self._instruments]
        dups = sorted({n for n in names if names.count(n) > 1})
        if dups:
            raise ConfigError(f"Duplicate instrument names: {dups}")
        clashes = storage_name_clashes(names)
        if clashes:
            raise ConfigError(f"Instrument names map to the same series: {clashes}")

    def __iter__(self) -> Iterator[InstrumentConfig]:
        return iter(self._instruments)

    def __len__(self) -> int:
        return len(self._instruments)

    def __contains__(self, name: object) -> bool:
        return any(i.name == name for i in self._instruments)

    def __repr__(self) -> str:
        return f"InstrumentRegistry({[i.name for i in self._instruments]})"

    @property
    def names(self) -> list[str]:
        return [i.name for i in self._instruments]

    def get(self, name: str) -> InstrumentConfig | None:
        for i in self._instruments:
            if i.name == name:
                return i
        return None

    def with_instrument(
        self,
        name: str,
        provider_code: str,
        display_name: str,
        logger: logging.Logger | None = None,
    ) -> "InstrumentRegistry":
        log = get_logger(logger)
        if name in self:
            log.info(f"[registry] {name} already exists in registry")
            return self

        code = normalize_contract_code(provider_code)
        if not is_valid_contract_code(code):
            raise ConfigError(f"Invalid contract code for {name}: {provider_code!r}")

        log.info(f"[registry] added {name} with code {code}")
        return InstrumentRegistry(self._instruments + (InstrumentConfig(name, code, display_name),))

    def only(self, names: list[str]) -> "InstrumentRegistry":
        """Subset in registry order; unknown names raise ConfigError."""
        unknown = sorted(set(names) - set(self.names))
        if unknown:
            raise ConfigError(f"Unknown markets: {unknown}. Known: {self.names}")
        return InstrumentRegistry([i for i in self._instruments if i.name in names])


def registry_from_markets(markets: list[dict]) -> InstrumentRegistry:
    """
    Build a registry from the `markets` list of markets.yaml.

    Each entry needs `key` and `contract_code`; `display_name` defaults to the key.
    """
    errors = []
    instruments = []
    seen_codes: dict[str, str] = {}

    for idx, m in enumerate(markets):
        if not isinstance(m, dict):
            errors.append(f"Market at index {idx}: expected a mapping, got {type(m).__name__}")
            continue

        missing = [f for f in ("key", "contract_code") if not m.get(f)]
        if missing:
            errors.append(f"Market at index {idx}: missing required fields: {', '.join(missing)}")
            continue

        key = str(m["key"]).strip()
        code = normalize_contract_code(m["contract_code"])
        if not is_valid_contract_code(code):
            errors.append(f"Market {key}: invalid contract_code {m['contract_code']!r}")
            continue
        if code in seen_codes:
            errors.append(f"Duplicate contract_code: {code} ({seen_codes[code]}, {key})")
            continue
        seen_codes[code] = key

        display = str(m.get("display_name") or key).strip()
        instruments.append(InstrumentConfig(name=key, provider_code=code, display_name=display))

    if errors:
        raise ConfigError("Invalid markets config:\n" + "\n".join(errors))

    return InstrumentRegistry(instruments)
