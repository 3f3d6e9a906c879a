import pytest
from click.testing import CliRunner

from mptree.cli import cli
from mptree.cli import render_forest
from mptree.tree import Node


@pytest.fixture
def invoke(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    runner = CliRunner()

    def _invoke(*args):
        return runner.invoke(cli, ['--url', url, '--store-children', *args], obj={})

    return _invoke


def test_render_forest():
    nodes = [
        Node(id='10', ancestors=['1'], data={'value': 'Ten'}),
        Node(id='1', data={'value': 'One'}),
        Node(id='2', ancestors=['1']),
        Node(id='3', ancestors=['1', '2'], data={'value': 'Three'}),
        Node(id='7'),
    ]
    assert render_forest(nodes) == [
        '1 One',
        '  2',
        '    3 Three',
        '  10 Ten',
        '7',
    ]


def test_reset_and_show(invoke):
    result = invoke('reset')
    assert result.exit_code == 0, result.output
    assert 'Loaded 11 nodes' in result.output
    result = invoke('show')
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert lines[0] == '1 Node1'
    assert '        9 Node9' in lines
    assert len(lines) == 11


def test_add_move_remove(invoke):
    assert invoke('reset').exit_code == 0
    result = invoke('add', '9', 'Leaf', '--id', '12')
    assert result.exit_code == 0, result.output
    assert 'Created 12' in result.output

    result = invoke('move', '4', '2')
    assert result.exit_code == 0, result.output
    assert 'Moved 4 to /1/2' in result.output
    lines = invoke('show').output.splitlines()
    assert '          12 Leaf' in lines

    result = invoke('remove', '2')
    assert result.exit_code == 0, result.output
    lines = invoke('show').output.splitlines()
    assert not any('Node4' in line or 'Leaf' in line for line in lines)
    assert len(lines) == 6


def test_errors_are_reported(invoke):
    assert invoke('reset').exit_code == 0
    result = invoke('move', '3', '3')
    assert result.exit_code == 1
    assert 'INVALID' in result.output
    result = invoke('remove', '404')
    assert result.exit_code == 1
    assert 'not found' in result.output
    result = invoke('add', 'root', 'Top', '--id', '1')
    assert result.exit_code == 1
    assert 'EXECFAIL' in result.output
