from __future__ import annotations

import pytest

from models.calls import CallSite
from models.changes import Change
from models.spans import SourceText
from rewrite.arguments import (
    extract_call_arguments,
    find_argument_list,
    split_arguments,
)
from rewrite.errors import ShapeMismatch
from rewrite.planner import Layout, pair_arguments, plan_rewrite

MINT_PARAMS = ("to", "qty", "meta", "exp")


def _site(text: str, callee: str) -> tuple[SourceText, CallSite]:
    source = SourceText(text, "Test.sol")
    start = text.index(callee)
    open_index = find_argument_list(text, start + len(callee))
    bounds, close = split_arguments(text, open_index)
    site = CallSite(
        callee_name=callee.rsplit(".", 1)[-1],
        scope_hint=None,
        argument_spans=tuple(source.span(s, e) for s, e in bounds),
        enclosing_span=source.span(start, close + 1),
        source_file="Test.sol",
        callee_text=callee,
        arguments_open=open_index,
        arguments_close=close,
    )
    return source, site


def _plan(
    text: str,
    callee: str,
    params: tuple[str, ...],
    layout: Layout | None = None,
) -> Change:
    source, site = _site(text, callee)
    arguments = extract_call_arguments(source, site)
    return plan_rewrite(source, site, params, arguments, layout)


def test_short_call_stays_on_one_line() -> None:
    change = _plan("mint(alice, 100, metadataHash, expiry);", "mint", MINT_PARAMS)

    assert change.original_text == "mint(alice, 100, metadataHash, expiry)"
    assert change.replacement_text == (
        "mint({to: alice, qty: 100, meta: metadataHash, exp: expiry})"
    )
    assert change.parameter_names == MINT_PARAMS


def test_long_call_is_split_one_argument_per_line() -> None:
    text = (
        "contract C {\n"
        "    function run() public {\n"
        "        token.mint(recipientAddressForTheMint, quantityOfTokensToMint, "
        "metadataHashForTheToken, expirationTimestamp);\n"
        "    }\n"
        "}\n"
    )

    change = _plan(text, "token.mint", MINT_PARAMS)

    assert change.replacement_text == (
        "token.mint({\n"
        "            to: recipientAddressForTheMint,\n"
        "            qty: quantityOfTokensToMint,\n"
        "            meta: metadataHashForTheToken,\n"
        "            exp: expirationTimestamp\n"
        "        })"
    )


def test_trailing_comma_when_enabled() -> None:
    text = (
        "    token.mint(recipientAddressForTheMint, quantityOfTokensToMint, "
        "metadataHashForTheToken, expirationTimestamp);\n"
    )

    change = _plan(text, "token.mint", MINT_PARAMS, Layout(trailing_comma=True))

    assert change.replacement_text == (
        "token.mint({\n"
        "        to: recipientAddressForTheMint,\n"
        "        qty: quantityOfTokensToMint,\n"
        "        meta: metadataHashForTheToken,\n"
        "        exp: expirationTimestamp,\n"
        "    })"
    )


def test_argument_count_over_threshold_is_multiline() -> None:
    change = _plan(
        "f(a, b, c);", "f", ("x", "y", "z"), Layout(max_inline_args=2, indent_width=2)
    )

    assert change.replacement_text == "f({\n  x: a,\n  y: b,\n  z: c\n})"


def test_crlf_source_keeps_crlf_line_endings() -> None:
    text = "  f(a, b, c);\r\n"

    change = _plan(text, "f", ("x", "y", "z"), Layout(max_inline_args=2))

    assert change.replacement_text == (
        "f({\r\n      x: a,\r\n      y: b,\r\n      z: c\r\n  })"
    )


def test_call_options_are_kept() -> None:
    change = _plan(
        "vault.deposit{value: msg.value}(account, 5);",
        "vault.deposit",
        ("account", "amount"),
    )

    assert change.replacement_text == (
        "vault.deposit{value: msg.value}({account: account, amount: 5})"
    )


def test_argument_text_is_copied_verbatim() -> None:
    change = _plan('f(g(x, [1,2,3]), "a, b");', "f", ("first", "second"))

    assert change.replacement_text == 'f({first: g(x, [1,2,3]), second: "a, b"})'
    for region in change.verbatim_regions:
        copied = change.replacement_text[
            region.replacement_offset : region.replacement_offset
            + region.source_end
            - region.source_start
        ]
        assert copied == 'f(g(x, [1,2,3]), "a, b");'[
            region.source_start : region.source_end
        ]


def test_unnamed_parameter_is_rejected() -> None:
    with pytest.raises(ShapeMismatch):
        _plan("f(a, b);", "f", ("to", ""))


def test_count_mismatch_is_rejected() -> None:
    with pytest.raises(ShapeMismatch):
        _plan("f(a, b);", "f", ("to",))


def test_pair_arguments_keeps_argument_order() -> None:
    source, site = _site("f(b, a);", "f")
    arguments = extract_call_arguments(source, site)

    pairs = pair_arguments(("first", "second"), arguments)

    assert [(name, argument.text) for name, argument in pairs] == [
        ("first", "b"),
        ("second", "a"),
    ]


def test_planning_is_deterministic() -> None:
    first = _plan("mint(alice, 100, metadataHash, expiry);", "mint", MINT_PARAMS)
    second = _plan("mint(alice, 100, metadataHash, expiry);", "mint", MINT_PARAMS)

    assert first == second
