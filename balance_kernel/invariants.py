"""
Kernel Invariants Contract.

These invariants are structural law for every reconstructed balance trail.
No configuration value may switch them off.

This module exists solely to declare these invariants explicitly. The
enforcement lives in balance_kernel.domain.numeric and
balance_kernel.domain.reconstruction.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    A violation is always surfaced as an error for the whole request.
    Nothing is clamped, skipped or defaulted.
    """

    NON_NEGATIVE_BALANCE = "non_negative_balance"
    """Every balance before and after an event is >= 0. Enforced by the
    backward walk before it steps past an event."""

    CONTINUITY = "continuity"
    """Within one page, the balance before an event equals the balance
    after the next older event. Enforced by verify_continuity()."""

    ROLE_RESOLUTION = "role_resolution"
    """The subject account is the sender or the receiver of every fungible
    token event on its page. Enforced by resolve_role()."""

    CHECKED_ARITHMETIC = "checked_arithmetic"
    """128-bit amounts never wrap around. Enforced by the range guards in
    balance_kernel.domain.numeric."""

    PAGE_ORDERING = "page_ordering"
    """A page is ordered newest first. Enforced before the walk starts."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_balance_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "balance_config",
    "scripts",
)
