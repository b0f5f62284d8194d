import math

import pytest

from mandelview.core.complex_number import Complex, ZERO, ONE, I, isclose
from mandelview.core.errors import DivisionByZero, InvalidConfiguration

ONE_PLUS_I = Complex(1, 1)
MINUS_I = Complex(0, -1)
MINUS_ONE = Complex(-1, 0)
ONE_MINUS_I = Complex(1, -1)
TWO_I = Complex(0, 2)
TWO = Complex(2, 0)
REAL = -12.0
IMAGINARY = 10.0


def test_constructor():
    assert TWO_I.real == 0.0
    assert TWO_I.imaginary == 2.0
    assert ONE_MINUS_I.real == 1.0
    assert ONE_MINUS_I.imaginary == -1.0


def test_constants():
    assert (ONE.real, ONE.imaginary) == (1.0, 0.0)
    assert (I.real, I.imaginary) == (0.0, 1.0)
    assert (ZERO.real, ZERO.imaginary) == (0.0, 0.0)
    assert Complex.ONE is ONE


def test_negate():
    assert ONE.negate() == MINUS_ONE
    assert MINUS_I.negate() == I
    assert ONE_MINUS_I.negate() == Complex(-1, 1)
    assert Complex(-REAL, -IMAGINARY).negate() == Complex(REAL, IMAGINARY)


def test_reciprocal():
    assert ONE.reciprocal() == ONE
    assert MINUS_I.reciprocal() == I
    assert TWO.reciprocal() == Complex(0.5, 0)
    assert ONE_MINUS_I.reciprocal() == Complex(0.5, 0.5)


def test_reciprocal_of_zero():
    with pytest.raises(DivisionByZero):
        ZERO.reciprocal()


def test_division_by_zero_is_a_zero_division_error():
    with pytest.raises(ZeroDivisionError):
        ONE.divide(ZERO)


@pytest.mark.parametrize("x", [ONE, I, Complex(3, 4), Complex(-0.5, 1e-3)])
def test_divide_by_zero_for_any_dividend(x):
    with pytest.raises(DivisionByZero):
        x.divide(ZERO)


def test_subtract():
    assert ZERO.subtract(ONE) == MINUS_ONE
    assert ONE.subtract(I) == ONE_MINUS_I
    assert Complex(REAL, IMAGINARY).subtract(ONE_PLUS_I) == Complex(REAL - 1, IMAGINARY - 1)


def test_divide():
    assert ONE_PLUS_I.divide(ONE) == ONE_PLUS_I
    assert ONE.divide(TWO) == Complex(0.5, 0)
    assert ONE_MINUS_I.divide(ONE_PLUS_I) == MINUS_I


def test_conjugate():
    assert ZERO.conjugate() == ZERO
    assert ONE.conjugate() == ONE
    assert ONE_MINUS_I.conjugate() == ONE_PLUS_I
    assert Complex(REAL, IMAGINARY).conjugate() == Complex(REAL, -IMAGINARY)


def test_rotation():
    assert isclose(Complex.rotation(math.pi / 2), I)
    assert isclose(Complex.rotation(-math.pi / 2), MINUS_I)
    assert Complex.rotation(0) == ONE
    assert isclose(Complex.rotation(math.pi / 4), Complex(math.sqrt(2) / 2, math.sqrt(2) / 2))
    assert isclose(Complex.rotation(math.pi / 3), Complex(0.5, math.sqrt(3) / 2))


def test_str():
    assert str(ONE_MINUS_I) == "Complex{real=1.0, imaginary=-1.0}"
    assert str(Complex(REAL, IMAGINARY)) == f"Complex{{real={REAL}, imaginary={IMAGINARY}}}"


def test_hash_is_structural():
    assert hash(Complex(REAL, IMAGINARY)) == hash(Complex(REAL, IMAGINARY))
    assert len({Complex(1, 2), Complex(1.0, 2.0), Complex(2, 1)}) == 2


def test_real_number():
    assert Complex.real_number(2) == TWO
    assert Complex.real_number(0) == ZERO
    assert Complex.real_number(5).real == 5
    assert Complex.real_number(5).imaginary == 0


def test_add():
    assert ZERO.add(ONE) == ONE
    assert ZERO.add(ZERO) == ZERO
    assert ZERO.add(Complex(0, -1)) == MINUS_I
    assert TWO.add(TWO_I) == Complex(2, 2)


def test_multiply():
    assert ONE.multiply(ONE) == ONE
    assert ZERO.multiply(ZERO) == ZERO
    assert I.multiply(I) == Complex.real_number(-1)
    assert Complex(REAL, IMAGINARY).multiply(Complex(REAL, IMAGINARY)) == Complex(44, -240)


def test_squared_modulus():
    assert I.squared_modulus() == 1
    assert ONE.squared_modulus() == 1
    assert ZERO.squared_modulus() == 0
    assert Complex.rotation(3).squared_modulus() == pytest.approx(1, abs=1e-12)
    assert TWO.squared_modulus() == 4
    assert TWO_I.squared_modulus() == 4
    assert TWO.add(TWO_I).squared_modulus() == 8


def test_modulus():
    assert I.modulus() == 1
    assert ONE.modulus() == 1
    assert ZERO.modulus() == 0
    assert Complex.rotation(3).modulus() == pytest.approx(1.0)
    assert TWO.modulus() == 2
    assert TWO_I.modulus() == 2
    assert TWO.add(TWO_I).modulus() == pytest.approx(2 * math.sqrt(2))


def test_pow():
    assert I.pow(4) == ONE
    assert isclose(Complex.real_number(math.sqrt(2)).pow(2), TWO)
    assert isclose(Complex(0, math.sqrt(2)).pow(4), TWO.pow(2))
    assert isclose(I.pow(13), I)
    assert Complex.real_number(3).pow(14) == Complex.real_number(3 ** 14)


def test_pow_zero_is_one():
    assert ZERO.pow(0) == ONE
    assert Complex(REAL, IMAGINARY).pow(0) == ONE


@pytest.mark.parametrize("exponent", [-1, 0.5, 2.0, True])
def test_pow_rejects_non_natural_exponents(exponent):
    with pytest.raises(InvalidConfiguration):
        TWO.pow(exponent)


def test_scale():
    assert ONE.scale(2) == TWO
    assert I.scale(2) == TWO_I
    assert ONE.scale(0) == ZERO
    assert ZERO.scale(42) == ZERO
    assert ONE.add(I).scale(2) == TWO.add(TWO_I)


def test_equals():
    assert TWO == Complex.real_number(2)
    assert ZERO == Complex(0, 0)
    assert ZERO == I.subtract(I)
    assert Complex(0.1 + 0.2, 0) != Complex(0.3, 0)


def test_isclose_tolerance():
    assert isclose(Complex(0.1 + 0.2, 0), Complex(0.3, 0))
    assert not isclose(Complex(1, 0), Complex(1.1, 0))
    assert isclose(Complex(1, 0), Complex(1.1, 0), tolerance=0.2)


class TestAlgebraicLaws:
    A = Complex(1.5, -2.25)
    B = Complex(-0.75, 3.0)
    C = Complex(4.0, 0.5)

    def test_commutativity(self):
        assert self.A.add(self.B) == self.B.add(self.A)
        assert self.A.multiply(self.B) == self.B.multiply(self.A)

    def test_distributivity(self):
        left = self.A.multiply(self.B.add(self.C))
        right = self.A.multiply(self.B).add(self.A.multiply(self.C))
        assert isclose(left, right)

    def test_double_reciprocal(self):
        assert TWO.reciprocal().reciprocal() == TWO
        assert isclose(self.A.reciprocal().reciprocal(), self.A)
        assert isclose(Complex(3, 4).reciprocal().reciprocal(), Complex(3, 4))

    def test_divide_by_self(self):
        assert ONE_PLUS_I.divide(ONE_PLUS_I) == ONE
        assert isclose(self.A.divide(self.A), ONE)
        assert isclose(self.C.divide(self.C), ONE)


def test_operators_delegate():
    a = Complex(1, 2)
    b = Complex(3, -1)
    assert a + b == a.add(b)
    assert a - b == a.subtract(b)
    assert a * b == a.multiply(b)
    assert a / b == a.divide(b)
    assert -a == a.negate()
    assert abs(b) == b.modulus()
    assert a ** 3 == a.pow(3)


def test_builtin_conversion():
    assert Complex.from_builtin(1 - 2j) == Complex(1, -2)
    assert Complex(1, -2).to_builtin() == 1 - 2j
    assert Complex.from_builtin(3) == Complex(3, 0)


def test_immutable():
    with pytest.raises(AttributeError):
        ONE.real = 2.0
