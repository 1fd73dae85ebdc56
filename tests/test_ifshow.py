#!/usr/bin/env python3
"""
Tests for the mcifreg-show command against a fake interface population
"""

import ipaddress
import json
import sys

import pytest

from mcifreg import ifshow
from mcifreg.registry import InterfaceRegistry


SNAPSHOT = [
    {'name': 'lo', 'flags': 0x49, 'family': 'packet', 'address': None},
    {'name': 'eth0', 'flags': 0x1043, 'family': 'packet', 'address': None},
    {'name': 'eth0', 'flags': 0x1043, 'family': 'ipv4', 'address': ipaddress.IPv4Address('10.0.0.5')},
    {'name': 'eth1', 'flags': 0x1043, 'family': 'packet', 'address': None},
    {'name': 'wlan0', 'flags': 0x1003, 'family': 'packet', 'address': None},
]
INDEXES = {'lo': 1, 'eth0': 2, 'eth1': 3, 'wlan0': 4}


@pytest.fixture
def fake_registry(monkeypatch):
    """Make mcifreg-show build its registry from SNAPSHOT"""
    def factory(**kwargs):
        return InterfaceRegistry(enumerator=lambda: [dict(e) for e in SNAPSHOT],
                                 nametoindex=lambda name: INDEXES.get(name, 0),
                                 **kwargs)

    monkeypatch.setattr(ifshow, 'InterfaceRegistry', factory)


def run(monkeypatch, *args):
    monkeypatch.setattr(sys, 'argv', ['mcifreg-show', *args])
    return ifshow.main()


def test_status_table(fake_registry, monkeypatch, capsys):
    assert run(monkeypatch) == 0
    lines = capsys.readouterr().out.splitlines()

    assert len(lines) == 4
    assert lines[0] == 'lo' + ' ' * 14 + '       1   -1   -1'
    assert [line.split()[0] for line in lines] == ['lo', 'eth0', 'eth1', 'wlan0']


def test_match_wildcard(fake_registry, monkeypatch, capsys):
    assert run(monkeypatch, '--match', 'eth+') == 0
    lines = capsys.readouterr().out.splitlines()

    assert [line.split()[0] for line in lines] == ['eth0', 'eth1']


def test_match_exact(fake_registry, monkeypatch, capsys):
    assert run(monkeypatch, '-m', 'eth1') == 0
    lines = capsys.readouterr().out.splitlines()

    assert [line.split()[1] for line in lines] == ['3']


def test_match_nothing_warns(fake_registry, monkeypatch, capsys):
    assert run(monkeypatch, '--match', 'ppp+') == 0
    captured = capsys.readouterr()

    assert captured.out == ''
    assert "No interfaces match 'ppp+'" in captured.err


def test_json_output(fake_registry, monkeypatch, capsys):
    assert run(monkeypatch, '--json') == 0
    records = json.loads(capsys.readouterr().out)

    assert [r['name'] for r in records] == ['lo', 'eth0', 'eth1', 'wlan0']
    eth0 = records[1]
    assert eth0['address'] == '10.0.0.5'
    assert eth0['ifindex'] == 2
    assert eth0['vif'] == -1
    assert records[0]['address'] is None


def test_refresh_reports_no_change(fake_registry, monkeypatch, capsys):
    assert run(monkeypatch, '--refresh') == 0
    assert 'Refresh: no change' in capsys.readouterr().err


def test_enumeration_error_reported(monkeypatch, capsys):
    def factory(**kwargs):
        return InterfaceRegistry(enumerator=lambda: 1 / 0, nametoindex=lambda name: 0, **kwargs)

    monkeypatch.setattr(ifshow, 'InterfaceRegistry', factory)
    assert run(monkeypatch) == 1
    assert 'Error:' in capsys.readouterr().err


def test_help(monkeypatch):
    with pytest.raises(SystemExit) as exc_info:
        run(monkeypatch, '-h')
    assert exc_info.value.code == 0


def test_collect_all_and_pattern(fake_registry):
    registry = ifshow.InterfaceRegistry()
    registry.init()

    assert [i.name for i in ifshow.collect(registry)] == ['lo', 'eth0', 'eth1', 'wlan0']
    assert [i.name for i in ifshow.collect(registry, 'w+')] == ['wlan0']
