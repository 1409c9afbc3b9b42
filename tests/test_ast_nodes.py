import dataclasses
import json

import pytest

from pixel_evolution.ast_nodes import (
    Lit, Rgb, PixelX, PixelY, Channel, Scale256, UnaryI, BinaryI, BinaryV,
    IfThenElseI, IfThenElseV, Pixel, Swap, PairBinaryI, PairUnaryV, PairBinaryV,
    PairIfThenElseI, PairIfThenElseV, node_from_dict, node_from_json,
)
from pixel_evolution.operators import Unary


def sample_tree():
    pair = PairIfThenElseV(
        Swap(Pixel()),
        PairUnaryV(Unary('mod', 7), Pixel()),
        PairBinaryV('xor', Pixel(), PairBinaryI('add', 'mul', PixelX(), Lit(-12))),
    )
    interior = IfThenElseI(
        Channel(),
        BinaryV('sub', pair),
        IfThenElseV(PixelY(), PairIfThenElseI(Rgb(1, 2, 3), Pixel(), Swap(Pixel()))),
    )
    return Scale256(UnaryI(Unary('div', 3), BinaryI('add', interior, Lit(2 ** 31 - 1))))


def test_dict_round_trip_preserves_tree():
    tree = sample_tree()
    assert node_from_dict(tree.to_dict()) == tree


def test_json_round_trip_preserves_tree():
    tree = sample_tree()
    data = tree.to_json()
    assert json.loads(data)['type'] == 'Scale256'
    assert node_from_json(data) == tree


def test_to_dict_layout():
    assert UnaryI(Unary('mod', 5), PixelX()).to_dict() == {
        'type': 'UnaryI',
        'op': {'name': 'mod', 'operand': 5},
        'child': {'type': 'PixelX'},
    }


def test_unknown_node_type():
    with pytest.raises(ValueError):
        node_from_dict({'type': 'Sin', 'child': {'type': 'PixelX'}})


def test_text_rendering():
    assert str(BinaryI('add', PixelX(), Lit(3))) == '(+ x 3)'
    assert str(Scale256(UnaryI(Unary('neg'), Channel()))) == '(scale-256 (neg c))'
    assert str(BinaryV('mul', Swap(Pixel()))) == '(* [swap xy])'
    assert str(PairBinaryI('and', 'or', Rgb(4, 5, 6), PixelY())) == '[[& |] 4/5/6 y]'
    assert str(IfThenElseV(PixelX(), PairUnaryV(Unary('div', 2), Pixel()))) == '(if x [/2 xy])'


def test_depth_and_node_count():
    tree = BinaryI('add', PixelX(), UnaryI(Unary('abs'), PixelY()))
    assert tree.get_depth() == 3
    assert len(tree.get_all_nodes()) == 4
    assert PixelX().get_depth() == 1
    assert PixelX().children == []


def test_nodes_are_immutable():
    node = BinaryI('add', PixelX(), Lit(1))
    with pytest.raises(dataclasses.FrozenInstanceError):
        node.op = 'sub'


def test_structural_equality():
    assert BinaryI('add', PixelX(), Lit(1)) == BinaryI('add', PixelX(), Lit(1))
    assert PixelX() != PixelY()
    assert hash(Lit(5)) == hash(Lit(5))


@pytest.mark.parametrize("value", [2 ** 31, -(2 ** 31) - 1, 1.5])
def test_literal_must_fit_int32(value):
    with pytest.raises(ValueError):
        Lit(value)


def test_rgb_channels_are_bytes():
    with pytest.raises(ValueError):
        Rgb(0, 256, 0)
    with pytest.raises(ValueError):
        Rgb(-1, 0, 0)


def test_children_must_have_the_right_kind():
    with pytest.raises(TypeError):
        Scale256(Pixel())
    with pytest.raises(TypeError):
        Swap(PixelX())
    with pytest.raises(TypeError):
        IfThenElseV(PixelX(), PixelY())
    with pytest.raises(TypeError):
        UnaryI('abs', PixelX())


def test_binary_operator_names_are_checked():
    with pytest.raises(ValueError):
        BinaryI('pow', PixelX(), PixelY())
    with pytest.raises(ValueError):
        PairBinaryI('add', 'div', PixelX(), PixelY())
