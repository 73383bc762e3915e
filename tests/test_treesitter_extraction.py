from __future__ import annotations

from pathlib import Path

import pytest

from models.calls import CallSite
from models.spans import SourceText
from parse.treesitter_calls import extract_calls, split_callee
from parse.treesitter_definitions import extract_definitions
from parse.treesitter_solidity import parse_file, parse_source
from rewrite.errors import ParseFailure

FIXTURE = Path(__file__).parent / "fixtures" / "vault"


def _by_callee(calls: list[CallSite]) -> dict[str, CallSite]:
    return {call.display_name: call for call in calls}


def _parse(text: str) -> list[CallSite]:
    return extract_calls(parse_source(SourceText(text, "Inline.sol")))


def test_definitions_keep_parameter_order() -> None:
    definitions, _ = extract_definitions(
        parse_file(FIXTURE / "Vault.sol", "Vault.sol")
    )
    table = {(d.kind, d.scope, d.name): d.parameter_names for d in definitions}

    assert table[("function", "Base", "record")] == ("account", "amount")
    assert table[("function", "Vault", "deposit")] == ("account", "amount")
    assert table[("function", "Vault", "constructor")] == ("token_", "treasury_")
    assert table[("event", "Vault", "Deposited")] == ("account", "amount")
    assert table[("error", "Vault", "TooSmall")] == ("amount", "minimum")
    assert table[("function", "Factory", "create")] == ("token", "treasury")


def test_definitions_record_path_and_line() -> None:
    definitions, _ = extract_definitions(
        parse_file(FIXTURE / "interfaces" / "IToken.sol", "interfaces/IToken.sol")
    )
    mint = next(d for d in definitions if d.name == "mint")

    assert mint.scope == "IToken"
    assert mint.parameter_names == ("to", "qty", "meta", "exp")
    assert mint.path == "interfaces/IToken.sol"
    assert mint.line == 5


def test_type_declarations_carry_bases() -> None:
    _, types = extract_definitions(parse_file(FIXTURE / "Vault.sol", "Vault.sol"))
    bases = {t.name: t.bases for t in types}

    assert bases["Vault"] == ("Base",)
    assert bases["Base"] == ()
    assert "Factory" in bases


def test_unnamed_parameter_is_empty_string() -> None:
    parsed = parse_source(
        SourceText("contract C { function f(uint256, address to) public {} }")
    )
    definitions, _ = extract_definitions(parsed)

    assert definitions[0].parameter_names == ("", "to")


def test_calls_in_fixture() -> None:
    calls = _by_callee(
        extract_calls(parse_file(FIXTURE / "Vault.sol", "Vault.sol"))
    )

    assert calls["TooSmall"].kind == "revert"
    assert calls["Deposited"].kind == "emit"
    assert calls["record"].enclosing_contract == "Vault"
    assert calls["new Vault"].kind == "new"
    assert calls["new Vault"].scope_hint == "Vault"
    assert calls["new Vault"].enclosing_contract == "Factory"
    assert calls["require"].arity == 2
    assert calls["token.mint"].arity == 4


def test_receiver_types_come_from_declarations() -> None:
    calls = _by_callee(
        extract_calls(parse_file(FIXTURE / "Vault.sol", "Vault.sol"))
    )

    assert calls["token.mint"].receiver_type == "IToken"
    assert calls["treasury.transfer"].receiver_type == "address payable"


def test_enclosing_span_covers_callee_and_arguments() -> None:
    text = "contract C { function f() public { emit Paid(a, b); } }"
    (call,) = _parse(text)

    assert text[call.enclosing_span.start : call.enclosing_span.end] == "Paid(a, b)"
    assert call.arguments_close == text.index(");")


def test_local_variable_shadows_state_variable() -> None:
    text = (
        "contract C {\n"
        "    IToken token;\n"
        "    function f() public {\n"
        "        INft token = INft(address(1));\n"
        "        token.mint(a, b);\n"
        "    }\n"
        "    function g() public {\n"
        "        token.mint(a, b);\n"
        "    }\n"
        "}\n"
    )
    mints = [call for call in _parse(text) if call.callee_name == "mint"]

    assert [call.receiver_type for call in mints] == ["INft", "IToken"]


def test_bindings_do_not_leak_between_contracts() -> None:
    text = (
        "contract One {\n"
        "    IA t;\n"
        "    function use() public { t.go(1, 2); }\n"
        "}\n"
        "contract Two {\n"
        "    function other() public { t.go(3, 4); }\n"
        "}\n"
    )
    first, second = [call for call in _parse(text) if call.callee_name == "go"]

    assert (first.enclosing_contract, first.receiver_type) == ("One", "IA")
    assert second.enclosing_contract == "Two"
    assert second.receiver_type is None


def test_salted_creation_is_collected() -> None:
    text = (
        "contract Factory {\n"
        "    function make(bytes32 s) public {\n"
        "        new V{salt: s}(1, address(this));\n"
        "        new V(1, address(this));\n"
        "    }\n"
        "}\n"
    )
    salted, plain = [call for call in _parse(text) if call.kind == "new"]

    assert salted.display_name == plain.display_name == "new V"
    assert salted.scope_hint == "V"
    assert salted.arity == plain.arity == 2
    assert salted.extraction_error is None
    span = salted.enclosing_span
    assert text[span.start : span.end] == "new V{salt: s}(1, address(this))"
    assert text[salted.arguments_open] == "("


def test_allocations_are_collected_as_new() -> None:
    text = (
        "contract C { function f(uint256 n) public {\n"
        "    bytes memory b = new bytes(n);\n"
        "    uint256[] memory xs = new uint256[](n);\n"
        "} }\n"
    )
    names = [call.callee_name for call in _parse(text) if call.kind == "new"]

    assert names == ["bytes", "uint256[]"]


def test_unnamed_callee_is_kept_with_an_error() -> None:
    text = "contract C { function f() public { ops[0](1, 2); } }"
    (call,) = _parse(text)

    assert call.display_name == "ops[0]"
    assert call.arity == 2
    assert call.extraction_error is not None


def test_named_arguments_are_detected() -> None:
    (call,) = _parse("contract C { function f() public { g({a: 1, b: 2}); } }")

    assert call.named_arguments


def test_call_options_are_not_part_of_the_name() -> None:
    text = (
        "contract C { function f(IVault vault) public "
        "{ vault.deposit{value: 1}(a, b); } }"
    )
    (call,) = _parse(text)

    assert call.callee_text == "vault.deposit"
    assert call.receiver_type == "IVault"
    assert call.arity == 2


def test_cast_receiver_names_its_type() -> None:
    text = "contract C { function f() public { IERC20(token).transfer(to, 1); } }"
    calls = _by_callee(_parse(text))

    assert calls["IERC20(token).transfer"].receiver_type == "IERC20"
    assert calls["IERC20"].arity == 1


def test_modifier_invocations_are_not_collected() -> None:
    text = "contract C { function f() public onlyRole(ADMIN) { g(1); } }"

    assert [call.callee_name for call in _parse(text)] == ["g"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("mint", (None, "mint")),
        ("token.mint", ("token", "mint")),
        ("a.b.c", ("a.b", "c")),
        ("IERC20(t).transfer", ("IERC20(t)", "transfer")),
        ("vault.deposit{value: x.y}", ("vault", "deposit")),
        ("items[i.j].push", ("items[i.j]", "push")),
        ("getPool()", None),
        (".x", None),
    ],
)
def test_split_callee(text: str, expected: tuple[str | None, str] | None) -> None:
    assert split_callee(text) == expected


def test_strict_parse_rejects_syntax_errors() -> None:
    source = SourceText("contract C { function f( public { } }", "Broken.sol")

    with pytest.raises(ParseFailure):
        parse_source(source, strict=True)
    assert parse_source(source).root is not None


def test_invalid_utf8_is_a_parse_failure(tmp_path: Path) -> None:
    path = tmp_path / "Bad.sol"
    path.write_bytes(b"contract C { string s = \"\xff\"; }")

    with pytest.raises(ParseFailure, match="not valid UTF-8"):
        parse_file(path)
