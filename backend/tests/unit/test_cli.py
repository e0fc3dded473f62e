"""Unit tests for the maintenance command line."""

import argparse
import json

import pytest

from hotel_pos import cli
from hotel_pos.application.services import StorageFacade
from hotel_pos.infrastructure.kv import InMemoryKeyValueStore


@pytest.fixture
def facade() -> StorageFacade:
    return StorageFacade.for_backend(InMemoryKeyValueStore())


def _args(*argv: str) -> argparse.Namespace:
    return cli.build_parser().parse_args(list(argv))


def test_parser_requires_collection_for_rebuild():
    with pytest.raises(SystemExit):
        _args("rebuild")
    args = _args("--json", "rebuild", "dishes", "--bucket-field", "category")
    assert args.collection == "dishes"
    assert args.bucket_field == "category"
    assert args.json is True


@pytest.mark.asyncio
async def test_status_on_fallback(facade: StorageFacade, capsys):
    code = await cli._run(_args("--json", "status"), facade)
    payload = json.loads(capsys.readouterr().out)
    assert code == cli.ExitCode.SUCCESS.value
    assert payload["backend"]["type"] == "memory"
    assert payload["is_real_connection"] is False
    assert payload["collections"] == {}


@pytest.mark.asyncio
async def test_inspect_and_rebuild(facade: StorageFacade, capsys):
    await facade.kv.set("dishes:orphan", {"id": "orphan", "category": "热菜"})

    assert await cli._run(_args("inspect", "dishes"), facade) == cli.ExitCode.DRIFT.value
    assert "DRIFT" in capsys.readouterr().out

    assert await cli._run(_args("--json", "rebuild", "dishes", "--bucket-field", "category"), facade) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["added"] == 1
    assert result["buckets"] == {"热菜": 1}

    assert await cli._run(_args("inspect", "dishes"), facade) == cli.ExitCode.SUCCESS.value


@pytest.mark.asyncio
async def test_seed_refused_on_fallback(facade: StorageFacade, capsys):
    code = await cli._run(_args("seed"), facade)
    assert code == cli.ExitCode.UNAVAILABLE.value
    assert "refusing to seed" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_snapshot(facade: StorageFacade, capsys):
    await facade.create("dishes", {"name": "可乐", "price": 12})
    assert await cli._run(_args("--json", "snapshot", "--description", "nightly"), facade) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["description"] == "nightly"
    assert summary["counts"]["dishes"] == 1


def test_main_without_command_prints_help(capsys):
    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out
