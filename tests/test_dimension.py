import numpy as np
import pytest
from ndcow.backend.dimension import (
    MAX_FIXED_RANK,
    DynDim,
    FixedDim,
    broadcast_dims,
    d0,
    d1,
    d2,
    d3,
    into_dimension,
)
from ndcow.exceptions import BoundsError, ShapeError

_KINDS = [FixedDim, DynDim]


@pytest.mark.parametrize("kind", _KINDS, ids=["fixed", "dyn"])
@pytest.mark.parametrize(
    "shape", [(), (5,), (3, 4), (2, 3, 4), (2, 0, 3), (1, 1, 7)]
)
def test_size_and_strides_match_numpy(kind: type, shape: tuple[int, ...]) -> None:
    dim = kind(shape)
    expected = np.empty(shape)
    assert dim.size() == expected.size
    if expected.size:
        assert dim.default_strides() == tuple(
            s // expected.itemsize for s in expected.strides
        )


def test_empty_shape_is_one_element() -> None:
    assert d0().size() == 1
    assert d0().default_strides() == ()


@pytest.mark.parametrize("kind", _KINDS, ids=["fixed", "dyn"])
def test_remove_axis_keeps_kind(kind: type) -> None:
    dim = kind((2, 3, 4))
    out = dim.remove_axis(1)
    assert isinstance(out, kind)
    assert out == (2, 4)
    with pytest.raises(ShapeError):
        dim.remove_axis(3)


@pytest.mark.parametrize("kind", _KINDS, ids=["fixed", "dyn"])
def test_swap_and_select(kind: type) -> None:
    dim = kind((2, 3, 4))
    assert dim.swap(0, 2) == (4, 3, 2)
    assert dim.select((1, 2, 0)) == (3, 4, 2)
    assert dim == (2, 3, 4)


@pytest.mark.parametrize("kind", _KINDS, ids=["fixed", "dyn"])
def test_check_index(kind: type) -> None:
    dim = kind((2, 3))
    assert dim.check_index([1, 2]) == (1, 2)
    with pytest.raises(BoundsError):
        dim.check_index((2, 0))
    with pytest.raises(BoundsError):
        dim.check_index((0, -1))
    with pytest.raises(ShapeError):
        dim.check_index((0,))


def test_fixed_and_dyn_compare_equal() -> None:
    assert FixedDim((2, 3)) == DynDim([2, 3])
    assert hash(FixedDim((2, 3))) == hash(DynDim([2, 3]))
    assert FixedDim((2, 3)) != DynDim([3, 2])


def test_into_dimension() -> None:
    assert isinstance(into_dimension(4), FixedDim)
    assert into_dimension(4) == (4,)
    assert isinstance(into_dimension((2, 3)), FixedDim)
    assert isinstance(into_dimension([2, 3]), DynDim)
    assert isinstance(into_dimension((1,) * (MAX_FIXED_RANK + 1)), DynDim)
    dim = d3(1, 2, 3)
    assert into_dimension(dim) is dim
    assert d1(3) == (3,) and d2(2, 3) == (2, 3)


def test_invalid_shapes() -> None:
    with pytest.raises(ShapeError):
        FixedDim((2, -1))
    with pytest.raises(ShapeError):
        FixedDim((1,) * (MAX_FIXED_RANK + 1))
    with pytest.raises(ShapeError):
        DynDim([2**40, 2**40]).size()


@pytest.mark.parametrize(
    "a,b,expected",
    [
        ((4, 5, 6), (6,), (4, 5, 6)),
        ((4, 1, 6), (5, 1), (4, 5, 6)),
        ((1,), (2, 2), (2, 2)),
        ((), (3,), (3,)),
    ],
)
def test_broadcast_dims(
    a: tuple[int, ...], b: tuple[int, ...], expected: tuple[int, ...]
) -> None:
    assert broadcast_dims(FixedDim(a), FixedDim(b)) == expected
    assert isinstance(broadcast_dims(DynDim(a), FixedDim(b)), DynDim)


def test_broadcast_dims_incompatible() -> None:
    with pytest.raises(ShapeError):
        broadcast_dims(FixedDim((4, 3)), FixedDim((4,)))
