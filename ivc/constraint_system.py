"""
IVC 제약 시스템 (Constraint System)
=====================================

회로 합성(synthesis) 중에 변수와 R1CS 제약을 모으는 작업 공간.

**R1CS 제약**:
  각 제약은 세 개의 선형결합(linear combination) a, b, c 에 대해

    ⟨a, z⟩ · ⟨b, z⟩ = ⟨c, z⟩

  를 요구한다. z = [1, 공개 입력..., 비공개 witness...] 이다.

**변수 저장 방식**:
  변수 값은 두 개의 평평한 배열(arena)에 저장된다.
  - inputs: 공개 입력 (R1CS 인스턴스의 x)
  - aux:    비공개 witness (R1CS 의 W)
  Variable(kind, index) 는 배열 위치만 가리키는 값 객체이다.

사용 예시 (x³ + x + 5 = 35):
    >>> cs = ConstraintSystem()
    >>> x = cs.alloc(FR(3))
    >>> x2 = cs.alloc(FR(9))
    >>> cs.enforce(x, x, x2)                # x · x = x²
    >>> cs.is_satisfied()
    True
"""

from collections import namedtuple

from ivc.field import FR, to_field
from ivc.r1cs import R1CSShape


ONE = "one"
INPUT = "input"
AUX = "aux"


class Variable(namedtuple("Variable", ["kind", "index"])):
    """제약 시스템 안의 변수 (kind, index).

    산술 연산자는 LinearCombination을 만든다.
    계수는 int 또는 체 원소이며, 체 원소는 왼쪽 피연산자가 될 수 없으므로 항상 `var * k` 순서로 쓴다.
    """

    __slots__ = ()

    def lc(self):
        return LinearCombination({self: 1})

    def __add__(self, other):
        return self.lc() + other

    def __radd__(self, other):
        return self.lc() + other

    def __sub__(self, other):
        return self.lc() - other

    def __rsub__(self, other):
        return LinearCombination.of(other) - self.lc()

    def __mul__(self, scalar):
        return self.lc() * scalar

    __rmul__ = __mul__

    def __neg__(self):
        return -self.lc()


class LinearCombination:
    """Σ coeff · variable 형태의 선형결합.

    계수는 체를 모른 채 int 또는 체 원소로 보관되고,
    값 계산(ConstraintSystem.value)과 행렬 변환(to_shape) 때 회로의 체로 옮겨진다.
    """

    __slots__ = ("terms",)

    def __init__(self, terms=None):
        self.terms = dict(terms) if terms else {}

    @classmethod
    def of(cls, value):
        if isinstance(value, LinearCombination):
            return value
        if isinstance(value, Variable):
            return value.lc()
        return cls({ConstraintSystem.one: value})

    def __add__(self, other):
        terms = dict(self.terms)
        for var, coeff in LinearCombination.of(other).terms.items():
            terms[var] = terms.get(var, 0) + coeff
        return LinearCombination(terms)

    __radd__ = __add__

    def __neg__(self):
        return LinearCombination({var: -coeff for var, coeff in self.terms.items()})

    def __sub__(self, other):
        return self + (-LinearCombination.of(other))

    def __rsub__(self, other):
        return LinearCombination.of(other) + (-self)

    def __mul__(self, scalar):
        if isinstance(scalar, (Variable, LinearCombination)):
            raise TypeError("a linear combination can only be scaled by a constant")
        return LinearCombination({var: coeff * scalar for var, coeff in self.terms.items()})

    __rmul__ = __mul__

    def __repr__(self):
        return " + ".join(f"{int(c)}·{v.kind}[{v.index}]" for v, c in self.terms.items()) or "0"


class ConstraintSystem:
    """합성 중인 회로의 변수 값과 제약을 보관한다.

    속성:
        field: 회로의 체 (기본 FR, CycleFold 회로는 FQ)
        inputs: 공개 입력 값 리스트
        aux: 비공개 witness 값 리스트
        constraints: (a, b, c) 선형결합 튜플 리스트
    """

    one = Variable(ONE, 0)

    def __init__(self, field=FR):
        self.field = field
        self.inputs = []
        self.aux = []
        self.constraints = []

    @property
    def num_constraints(self):
        return len(self.constraints)

    @property
    def num_inputs(self):
        return len(self.inputs)

    @property
    def num_aux(self):
        return len(self.aux)

    def alloc(self, value):
        """비공개 witness 변수를 할당한다."""
        self.aux.append(to_field(self.field, value))
        return Variable(AUX, len(self.aux) - 1)

    def alloc_input(self, value):
        """공개 입력 변수를 할당한다."""
        self.inputs.append(to_field(self.field, value))
        return Variable(INPUT, len(self.inputs) - 1)

    def enforce(self, a, b, c):
        """제약 ⟨a⟩ · ⟨b⟩ = ⟨c⟩ 를 추가한다."""
        self.constraints.append(
            (LinearCombination.of(a), LinearCombination.of(b), LinearCombination.of(c))
        )

    def _get(self, var):
        if var.kind == ONE:
            return self.field(1)
        if var.kind == INPUT:
            return self.inputs[var.index]
        return self.aux[var.index]

    def value(self, x):
        """변수 또는 선형결합의 현재 값."""
        if isinstance(x, Variable):
            return self._get(x)
        total = self.field(0)
        for var, coeff in LinearCombination.of(x).terms.items():
            total = total + coeff * self._get(var)
        return total

    def which_is_unsatisfied(self):
        """만족되지 않는 첫 번째 제약의 인덱스. 모두 만족하면 None."""
        for idx, (a, b, c) in enumerate(self.constraints):
            if self.value(a) * self.value(b) != self.value(c):
                return idx
        return None

    def is_satisfied(self):
        return self.which_is_unsatisfied() is None

    # ── R1CS 변환 ────────────────────────────────────────────────

    def _column(self, var):
        if var.kind == ONE:
            return 0
        if var.kind == INPUT:
            return 1 + var.index
        return 1 + self.num_inputs + var.index

    def _row(self, lc):
        row = {}
        for var, coeff in lc.terms.items():
            coeff = to_field(self.field, coeff)
            if coeff != 0:
                row[self._column(var)] = coeff
        return tuple(sorted(row.items()))

    def to_shape(self):
        """제약을 z = [u, x..., W...] 열 배치의 희소 행렬 A, B, C 로 변환한다."""
        A, B, C = [], [], []
        for a, b, c in self.constraints:
            A.append(self._row(a))
            B.append(self._row(b))
            C.append(self._row(c))
        return R1CSShape(
            num_constraints=self.num_constraints,
            num_io=self.num_inputs,
            num_vars=self.num_aux,
            A=tuple(A),
            B=tuple(B),
            C=tuple(C),
            field=self.field,
        )

    def assignment(self):
        """(공개 입력 x, witness W) 튜플."""
        return tuple(self.inputs), tuple(self.aux)
