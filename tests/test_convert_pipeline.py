from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from models.calls import CallSite
from models.spans import SourceText
from parse.name_resolution import build_registry
from rewrite.convert import convert_files, lookup_parameter_names
from rewrite.errors import ShapeMismatch
from rules.config import NamedArgsConfig
from rules.mapping import ManualMapping

FIXTURE = Path(__file__).parent / "fixtures" / "vault"

EXPECTED_REWRITES = [
    "revert TooSmall({amount: amount, minimum: 10});",
    "record({account: account, amount: amount});",
    "emit Deposited({account: account, amount: amount});",
    "token.mint({to: alice, qty: 100, meta: metadataHash, exp: expiry});",
    "deposit({account: alice, amount: 50});",
    "return new Vault({token_: token, treasury_: treasury});",
]

ORACLE_SOURCE = """\
pragma solidity ^0.8.20;

contract Pricing {
    IOracle oracle;

    function price(address asset) public view returns (uint256) {
        return oracle.quote(asset, 1 ether);
    }
}
"""

SETTLE_SOURCE = """\
pragma solidity ^0.8.20;

contract Left {
    function settle(uint256 a, uint256 b) public {}
}

contract Right {
    function settle(uint256 x, uint256 y) public {}
}

contract Desk {
    function close() public {
        settle(1, 2);
    }
}
"""


PAIR_SOURCE = """\
pragma solidity ^0.8.20;

contract Pair {
    constructor(address left, address right) {}
}

contract PairFactory {
    function deploy(bytes32 salt, address a, address b) external returns (Pair) {
        return new Pair{salt: salt}(a, b);
    }
}
"""

CONTRACTS_SOURCE = """\
pragma solidity ^0.8.20;

interface IA {
    function go(uint256 a, uint256 b) external;
}

interface IB {
    function go(uint256 x, uint256 y) external;
}

contract One {
    IA t;

    function use() public {
        t.go(1, 2);
    }
}

contract Two {
    function other() public {
        t.go(3, 4);
    }
}
"""

LEDGER_SOURCE = """\
pragma solidity ^0.8.20;

contract Ledger {
    function book(uint256 amount, uint256 fee) public {}

    function run(uint256 n) public {
        book(1, /* fee */ 2);
        book(3, 4);
        ops[0](5, 6);
        bytes memory scratch = new bytes(n);
    }
}
"""


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    shutil.copytree(FIXTURE, root)
    return root


def _sources(root: Path) -> list[Path]:
    return sorted(root.rglob("*.sol"))


def test_converts_resolvable_calls(project: Path) -> None:
    result = convert_files(_sources(project), project)

    text = (project / "Vault.sol").read_text(encoding="utf-8")
    for rewrite in EXPECTED_REWRITES:
        assert rewrite in text
    assert 'require(expiry > block.timestamp, "expired");' in text
    assert "treasury.transfer(1);" in text

    summary = result.summary
    assert summary.converted_count == len(EXPECTED_REWRITES)
    assert summary.total_files == 2
    assert summary.files_changed == 1
    assert summary.unresolved_calls == 0
    assert summary.excluded_calls == 2
    assert result.exit_code == 0


def test_change_records_point_at_original_lines(project: Path) -> None:
    result = convert_files(_sources(project), project)

    mint = next(c for c in result.report.changes if c.callee_name == "token.mint")
    assert mint.file == "Vault.sol"
    assert mint.line == 36
    assert mint.original_text == "token.mint(alice, 100, metadataHash, expiry)"


def test_second_run_changes_nothing(project: Path) -> None:
    config = NamedArgsConfig(backup=False)
    convert_files(_sources(project), project, config)
    first = (project / "Vault.sol").read_text(encoding="utf-8")

    result = convert_files(_sources(project), project, config)

    assert result.summary.converted_count == 0
    assert result.summary.files_changed == 0
    assert (project / "Vault.sol").read_text(encoding="utf-8") == first
    reasons = {record.reason for record in result.report.skipped}
    assert "already_named" in reasons


def test_dry_run_writes_nothing(project: Path) -> None:
    before = (project / "Vault.sol").read_bytes()

    result = convert_files(_sources(project), project, NamedArgsConfig(dry_run=True))

    assert result.report.dry_run
    assert result.summary.converted_count == len(EXPECTED_REWRITES)
    assert result.summary.files_changed == 1
    assert (project / "Vault.sol").read_bytes() == before
    assert not (project / "Vault.sol.bak").exists()


def test_backup_keeps_original(project: Path) -> None:
    before = (project / "Vault.sol").read_bytes()

    convert_files(_sources(project), project)

    assert (project / "Vault.sol.bak").read_bytes() == before
    assert not (project / "interfaces" / "IToken.sol.bak").exists()


def test_backup_can_be_disabled(project: Path) -> None:
    convert_files(_sources(project), project, NamedArgsConfig(backup=False))

    assert not (project / "Vault.sol.bak").exists()


def test_min_args_leaves_smaller_calls(project: Path) -> None:
    result = convert_files(
        _sources(project), project, NamedArgsConfig(min_args=3, dry_run=True)
    )

    assert result.summary.converted_count == 1
    assert result.report.changes[0].callee_name == "token.mint"


def test_unresolved_call_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "Pricing.sol"
    path.write_text(ORACLE_SOURCE, encoding="utf-8")

    result = convert_files([path], tmp_path)

    assert path.read_text(encoding="utf-8") == ORACLE_SOURCE
    (record,) = result.report.unresolved
    assert record.function == "oracle.quote"
    assert record.argument_count == 2
    assert record.file == "Pricing.sol"
    assert record.line == 7
    assert record.model_dump(by_alias=True)["argumentCount"] == 2


def test_manual_mapping_fills_in_unresolved_call(tmp_path: Path) -> None:
    path = tmp_path / "Pricing.sol"
    path.write_text(ORACLE_SOURCE, encoding="utf-8")
    mapping = ManualMapping({"IOracle.quote": ("asset", "amount")})

    result = convert_files([path], tmp_path, NamedArgsConfig(backup=False), mapping)

    assert "oracle.quote({asset: asset, amount: 1 ether})" in path.read_text(
        encoding="utf-8"
    )
    assert result.summary.unresolved_calls == 0
    assert result.summary.converted_count == 1


def test_ambiguous_call_is_left_alone(tmp_path: Path) -> None:
    path = tmp_path / "Desk.sol"
    path.write_text(SETTLE_SOURCE, encoding="utf-8")

    result = convert_files([path], tmp_path)

    assert path.read_text(encoding="utf-8") == SETTLE_SOURCE
    assert result.summary.ambiguous_skipped == 1
    assert result.report.unresolved == []
    (skip,) = [s for s in result.report.skipped if s.reason == "ambiguous"]
    assert "Left.settle" in (skip.detail or "")


def test_parse_failure_does_not_stop_the_batch(project: Path) -> None:
    broken = project / "Broken.sol"
    broken.write_bytes(b"contract Broken { string s = \"\xff\"; }")

    result = convert_files(_sources(project), project, NamedArgsConfig(dry_run=True))

    assert result.summary.parse_failures == 1
    assert result.summary.converted_count == len(EXPECTED_REWRITES)
    assert result.exit_code == 1
    (error,) = result.report.errors
    assert error.kind == "parse_failure"
    assert error.file == "Broken.sol"


def test_strict_parse_rejects_files_with_syntax_errors(tmp_path: Path) -> None:
    path = tmp_path / "Partial.sol"
    path.write_text(
        "contract Partial {\n"
        "    function ok(uint256 a, uint256 b) public {}\n"
        "    function broken( public {}\n"
        "}\n",
        encoding="utf-8",
    )

    lenient = convert_files([path], tmp_path, NamedArgsConfig(dry_run=True))
    strict = convert_files(
        [path], tmp_path, NamedArgsConfig(dry_run=True, strict_parse=True)
    )

    assert lenient.summary.parse_failures == 0
    assert strict.summary.parse_failures == 1
    assert strict.exit_code == 1


def test_mapping_with_wrong_length_is_a_shape_mismatch() -> None:
    source = SourceText("quote(a, b)")
    span = source.span(0, 11)
    call = CallSite(
        callee_name="quote",
        scope_hint=None,
        argument_spans=(source.span(6, 7), source.span(9, 10)),
        enclosing_span=span,
        source_file="Test.sol",
    )

    with pytest.raises(ShapeMismatch):
        lookup_parameter_names(
            call, build_registry([]), ManualMapping({"quote": ("asset",)})
        )


def test_registry_answer_wins_over_mapping(project: Path) -> None:
    mapping = ManualMapping({"token.mint": ("a", "b", "c", "d")})

    result = convert_files(
        _sources(project), project, NamedArgsConfig(dry_run=True), mapping
    )

    mint = next(c for c in result.report.changes if c.callee_name == "token.mint")
    assert mint.replacement_text.startswith("token.mint({to: alice")


def test_salted_creation_is_converted(tmp_path: Path) -> None:
    path = tmp_path / "PairFactory.sol"
    path.write_text(PAIR_SOURCE, encoding="utf-8")

    result = convert_files([path], tmp_path, NamedArgsConfig(backup=False))

    assert "return new Pair{salt: salt}({left: a, right: b});" in path.read_text(
        encoding="utf-8"
    )
    assert result.summary.total_calls == 1
    assert result.summary.converted_count == 1
    assert result.report.changes[0].callee_name == "new Pair"


def test_receiver_binding_stays_in_its_contract(tmp_path: Path) -> None:
    path = tmp_path / "Contracts.sol"
    path.write_text(CONTRACTS_SOURCE, encoding="utf-8")

    result = convert_files([path], tmp_path, NamedArgsConfig(backup=False))

    text = path.read_text(encoding="utf-8")
    assert "t.go({a: 1, b: 2});" in text
    assert "t.go(3, 4);" in text
    assert result.summary.converted_count == 1
    (skip,) = result.report.skipped
    assert skip.reason == "ambiguous"
    assert skip.line == 21


def test_unreadable_calls_are_reported_not_counted_as_resolved(
    tmp_path: Path,
) -> None:
    path = tmp_path / "Ledger.sol"
    path.write_text(LEDGER_SOURCE, encoding="utf-8")

    result = convert_files([path], tmp_path, NamedArgsConfig(dry_run=True))

    summary = result.summary
    assert summary.total_calls == 4
    assert summary.converted_count == 1
    assert summary.resolved_calls == 1
    assert summary.extraction_failures == 2
    assert summary.excluded_calls == 1
    reasons = {(s.callee_name, s.reason) for s in result.report.skipped}
    assert reasons == {
        ("book", "extraction_failure"),
        ("ops[0]", "extraction_failure"),
        ("new bytes", "global_builtin"),
    }
