import os
from dataclasses import dataclass
from fractions import Fraction
from typing import Mapping, Optional

from zkbridge.core.utils import DEPOSIT_GAS_PER_PUBDATA_LIMIT, RecommendedGasLimit

ENV_PREFIX = "ZKBRIDGE_"


@dataclass(frozen=True)
class BridgeSettings:
    """
    Tunables shared by the bridge operations.

    :param base_fee_multiplier: Multiplier applied to the L1 base fee when no fee is supplied.
    :param gas_limit_scale: Factor applied to L1 gas estimates.
    :param gas_per_pubdata_byte: Default L2 gas per pubdata byte for priority operations.
    :param approve_gas_limit: Gas limit used for ERC20 approvals when none is supplied.
    :param receipt_timeout: Seconds to wait for a receipt before giving up.
    :param receipt_poll_latency: Seconds between receipt polls.
    """

    base_fee_multiplier: Fraction = Fraction(3, 2)
    gas_limit_scale: Fraction = Fraction(6, 5)
    gas_per_pubdata_byte: int = DEPOSIT_GAS_PER_PUBDATA_LIMIT
    approve_gas_limit: int = int(RecommendedGasLimit.ERC20_APPROVE)
    receipt_timeout: float = 120
    receipt_poll_latency: float = 0.1

    def __post_init__(self):
        object.__setattr__(
            self, "base_fee_multiplier", Fraction(self.base_fee_multiplier)
        )
        object.__setattr__(self, "gas_limit_scale", Fraction(self.gas_limit_scale))
        if self.base_fee_multiplier < 1:
            raise ValueError(
                f"base_fee_multiplier must be >= 1, got {self.base_fee_multiplier}"
            )
        if self.gas_limit_scale < 1:
            raise ValueError(f"gas_limit_scale must be >= 1, got {self.gas_limit_scale}")
        if self.gas_per_pubdata_byte <= 0:
            raise ValueError("gas_per_pubdata_byte must be positive")
        if self.receipt_timeout <= 0 or self.receipt_poll_latency <= 0:
            raise ValueError("receipt_timeout and receipt_poll_latency must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        """Builds settings from ZKBRIDGE_* variables, keeping defaults for unset ones."""
        if environ is None:
            environ = os.environ

        kwargs = {}
        for name, convert in (
            ("base_fee_multiplier", Fraction),
            ("gas_limit_scale", Fraction),
            ("gas_per_pubdata_byte", int),
            ("approve_gas_limit", int),
            ("receipt_timeout", float),
            ("receipt_poll_latency", float),
        ):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                kwargs[name] = convert(raw)
        return cls(**kwargs)


DEFAULT_SETTINGS = BridgeSettings()
