"""Call-eligibility rules.

Anything not positively excluded here is a conversion candidate; the call
must still resolve to exactly one definition before it is rewritten.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Collection

    from models.calls import CallSite

ExclusionReason = Literal[
    "already_named",
    "no_arguments",
    "below_min_args",
    "reserved_namespace",
    "type_conversion",
    "global_builtin",
    "member_builtin",
]

RESERVED_NAMESPACES = frozenset({"abi"})

ENVIRONMENT_NAMESPACES = frozenset({"msg", "block", "tx"})

GLOBAL_BUILTINS = frozenset(
    {
        "require",
        "revert",
        "assert",
        "keccak256",
        "sha256",
        "sha3",
        "ripemd160",
        "ecrecover",
        "addmod",
        "mulmod",
        "blockhash",
        "blobhash",
        "selfdestruct",
        "suicide",
        "gasleft",
    }
)

MEMBER_BUILTINS = frozenset(
    {
        "push",
        "pop",
        "concat",
        "call",
        "delegatecall",
        "staticcall",
        "send",
        "transfer",
    }
)

PRIMITIVE_TYPE_PATTERN = re.compile(
    r"^(?:address(?:\s+payable)?|payable|bool|string|byte|bytes(?:[1-9]|[12]\d|3[0-2])?"
    r"|u?int(?:8|16|24|32|40|48|56|64|72|80|88|96|104|112|120|128|136|144|152"
    r"|160|168|176|184|192|200|208|216|224|232|240|248|256)?"
    r"|u?fixed(?:\d+x\d+)?|var)$"
)

_TYPE_CONVERSION_CALL = re.compile(r"^\s*([A-Za-z_]\w*(?:\s+payable)?)\s*\(")


def is_primitive_type(name: str) -> bool:
    """True for elementary Solidity type names (``uint256``, ``address``...)."""
    return PRIMITIVE_TYPE_PATTERN.match(name.strip()) is not None


def is_type_conversion_expr(expr: str) -> bool:
    """True for expressions like ``address(x)`` or ``payable(owner)``."""
    stripped = expr.strip()
    match = _TYPE_CONVERSION_CALL.match(stripped)
    if match is None or not stripped.endswith(")"):
        return False
    return is_primitive_type(match.group(1))


def is_index_access_expr(expr: str) -> bool:
    """True for element accesses such as ``holders[i]``."""
    return expr.strip().endswith("]")


def is_allocation_type(name: str) -> bool:
    """True for ``new`` targets that are not contracts (``bytes``, ``T[]``)."""
    return is_primitive_type(name) or name.strip().endswith("]")


def classify_call(
    call: CallSite,
    *,
    min_args: int = 1,
    known_types: Collection[str] = (),
    exclude_type_casts: bool = True,
) -> ExclusionReason | None:
    """Return the first exclusion rule matching ``call``, or None.

    ``known_types`` holds the contract, interface and library names declared
    in the batch; a one-argument bare call to one of them is a cast such as
    ``IERC20(token)`` when ``exclude_type_casts`` is set. Member built-ins
    are also excluded on variables declared with an elementary type
    (``address payable to; to.transfer(x)``). Memory allocations such as
    ``new bytes(n)`` count as global built-ins.
    """
    if call.named_arguments:
        return "already_named"

    if call.arity == 0:
        return "no_arguments"

    if call.arity < min_args:
        return "below_min_args"

    receiver = call.receiver_text.strip() if call.receiver_text is not None else None

    if receiver in RESERVED_NAMESPACES:
        return "reserved_namespace"

    if receiver is None and call.kind == "call":
        if is_primitive_type(call.callee_name):
            return "type_conversion"
        if exclude_type_casts and call.arity == 1 and call.callee_name in known_types:
            return "type_conversion"
        if call.callee_name in GLOBAL_BUILTINS:
            return "global_builtin"

    if call.kind == "new" and is_allocation_type(call.callee_name):
        return "global_builtin"

    if receiver is not None and call.callee_name in MEMBER_BUILTINS:
        if (
            receiver in ENVIRONMENT_NAMESPACES
            or is_type_conversion_expr(receiver)
            or is_index_access_expr(receiver)
            or (
                call.receiver_type is not None
                and is_primitive_type(call.receiver_type)
            )
        ):
            return "member_builtin"

    return None


def is_eligible(
    call: CallSite,
    *,
    min_args: int = 1,
    known_types: Collection[str] = (),
    exclude_type_casts: bool = True,
) -> bool:
    """True when no exclusion rule applies to ``call``."""
    return (
        classify_call(
            call,
            min_args=min_args,
            known_types=known_types,
            exclude_type_casts=exclude_type_casts,
        )
        is None
    )


__all__ = [
    "ENVIRONMENT_NAMESPACES",
    "ExclusionReason",
    "GLOBAL_BUILTINS",
    "MEMBER_BUILTINS",
    "RESERVED_NAMESPACES",
    "classify_call",
    "is_allocation_type",
    "is_eligible",
    "is_index_access_expr",
    "is_primitive_type",
    "is_type_conversion_expr",
]
