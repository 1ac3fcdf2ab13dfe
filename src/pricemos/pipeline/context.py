from __future__ import annotations

from dataclasses import dataclass, field

from ..domain import ChainProfile, ChainResult, DerivedAddress, PoolPosition
from ..report import BalanceReport
from ..state import AppState


@dataclass
class BalanceContext:
    state: AppState
    address: str
    chain_names: list[str]
    profiles: list[ChainProfile] | None = None
    failures: dict[str, BaseException] = field(default_factory=dict)
    derived: list[DerivedAddress] | None = None
    results: list[ChainResult] | None = None
    pool_positions: list[PoolPosition] = field(default_factory=list)
    report: BalanceReport | None = None

    @property
    def profiles_required(self) -> list[ChainProfile]:
        if self.profiles is None:
            raise RuntimeError(
                "Chain profiles have not been set. Ensure resolve_chains() is called before accessing this property."
            )
        return self.profiles

    @property
    def derived_required(self) -> list[DerivedAddress]:
        if self.derived is None:
            raise RuntimeError(
                "Derived addresses have not been set. Ensure resolve_chains() is called before accessing this property."
            )
        return self.derived

    @property
    def results_required(self) -> list[ChainResult]:
        if self.results is None:
            raise RuntimeError(
                "Chain results have not been set. Ensure collect_balances() is called before accessing this property."
            )
        return self.results

    @property
    def report_required(self) -> BalanceReport:
        if self.report is None:
            raise RuntimeError(
                "Report has not been set. Ensure build_totals() is called before accessing this property."
            )
        return self.report
