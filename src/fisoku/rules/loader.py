from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from ..models import Chain


@dataclass(frozen=True, slots=True)
class NormalizationRules:
    stopwords: set[str]
    synonyms: dict[str, str]


@dataclass(frozen=True, slots=True)
class Merchant:
    id: str
    names: list[str]


@dataclass(frozen=True, slots=True)
class MerchantsRules:
    merchants: list[Merchant]


@dataclass(frozen=True, slots=True)
class TotalRule:
    keyword: str
    exclude: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ChainStrategy:
    chain: Chain
    display_name: str | None
    detect: list[str]
    brand_variants: list[str]
    item_start: list[str]
    item_end: list[str]
    discount_keywords: list[str]
    pan_anchors: list[str]
    pan_before_total: bool
    total_rules: list[TotalRule]
    scan_bottom_up: bool = True


@dataclass(frozen=True, slots=True)
class KeywordRules:
    noise: list[str]
    discounts: list[str]
    cash: list[str]
    card: list[str]
    address_markers: list[str]
    address_exclude: list[str]
    cities: list[str]
    branch: list[str]
    legal_suffixes: list[str]


@dataclass(frozen=True, slots=True)
class RuleSet:
    normalization: NormalizationRules
    merchants: MerchantsRules
    chains: list[ChainStrategy]
    keywords: KeywordRules

    @classmethod
    def load_from_dir(cls, rules_dir: Path) -> "RuleSet":
        normalization = _load_yaml(rules_dir / "normalization.yml")
        merchants = _load_yaml(rules_dir / "merchants.yml")
        chains = _load_yaml(rules_dir / "chains.yml")
        keywords = _load_yaml(rules_dir / "keywords.yml")

        normalization_rules = NormalizationRules(
            stopwords=set((normalization or {}).get("stopwords") or []),
            synonyms={str(k): str(v) for k, v in ((normalization or {}).get("synonyms") or {}).items()},
        )

        merchants_rules = MerchantsRules(
            merchants=[
                Merchant(id=str(m["id"]), names=[str(n) for n in (m.get("names") or [])])
                for m in ((merchants or {}).get("merchants") or [])
            ]
        )

        chain_strategies = [_chain_strategy(entry) for entry in ((chains or {}).get("chains") or [])]
        if not any(s.chain is Chain.UNKNOWN for s in chain_strategies):
            raise ValueError(f"{rules_dir / 'chains.yml'} must declare an Unknown strategy.")

        return cls(
            normalization=normalization_rules,
            merchants=merchants_rules,
            chains=chain_strategies,
            keywords=_keyword_rules(keywords or {}),
        )

    @property
    def known_chains(self) -> list[ChainStrategy]:
        return [s for s in self.chains if s.chain is not Chain.UNKNOWN]

    def strategy_for(self, chain: Chain) -> ChainStrategy:
        for strategy in self.chains:
            if strategy.chain is chain:
                return strategy
        return self.strategy_for(Chain.UNKNOWN)


def _chain_strategy(entry: dict) -> ChainStrategy:
    totals = dict(entry.get("totals") or {})
    total_rules = [
        TotalRule(keyword=str(rule["keyword"]), exclude=_str_list(rule.get("exclude")))
        for rule in (totals.get("grand") or [])
    ]
    display_name = entry.get("display_name")
    return ChainStrategy(
        chain=Chain(str(entry["id"])),
        display_name=str(display_name) if display_name else None,
        detect=_str_list(entry.get("detect")),
        brand_variants=_str_list(entry.get("brand_variants")),
        item_start=_str_list(entry.get("item_start")),
        item_end=_str_list(entry.get("item_end")),
        discount_keywords=_str_list(entry.get("discount_keywords")),
        pan_anchors=_str_list(entry.get("pan_anchors")),
        pan_before_total=bool(entry.get("pan_before_total") or False),
        total_rules=total_rules,
        scan_bottom_up=str(totals.get("scan") or "bottom_up") == "bottom_up",
    )


def _keyword_rules(data: dict) -> KeywordRules:
    payment = dict(data.get("payment") or {})
    address = dict(data.get("address") or {})
    return KeywordRules(
        noise=_str_list(data.get("noise")),
        discounts=_str_list(data.get("discounts")),
        cash=_str_list(payment.get("cash")),
        card=_str_list(payment.get("card")),
        address_markers=_str_list(address.get("markers")),
        address_exclude=_str_list(address.get("exclude")),
        cities=_str_list(address.get("cities")),
        branch=_str_list(data.get("branch")),
        legal_suffixes=_str_list(data.get("legal_suffixes")),
    )


def _str_list(value: object) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]  # type: ignore[union-attr]


def _load_yaml(path: Path) -> dict | None:
    if not path.exists():
        raise FileNotFoundError(str(path))
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at {path}, got {type(data).__name__}.")
    return data
