"""Type-safe enumerations for pancore.

StrEnum values compare equal to their plain strings, so they can be written
straight into tables and JSON summaries.
"""

from enum import StrEnum


class Scenario(StrEnum):
    """The four prior scenarios simulated in every calibration run.

    Attributes:
        CORE: latent frequency above the high breakpoint
        NOT_CORE: latent frequency below the high breakpoint
        RARE: latent frequency below the low breakpoint
        NOT_RARE: latent frequency above the low breakpoint
    """

    CORE = "core"
    NOT_CORE = "not_core"
    RARE = "rare"
    NOT_RARE = "not_rare"

    @property
    def keep_upper(self) -> bool:
        """Whether the scenario keeps the prior mass above its breakpoint."""
        return self in (Scenario.CORE, Scenario.NOT_RARE)

    @property
    def uses_high_break(self) -> bool:
        return self in (Scenario.CORE, Scenario.NOT_CORE)


class GeneLabel(StrEnum):
    """Labels assigned to genes from their observed counts."""

    CORE = "core"
    RARE = "rare"
    MIDDLE = "middle"
