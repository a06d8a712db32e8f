# =============================================================================
# JOIN PLANNER
# =============================================================================
# - Declare the join paths, keys and cardinality of the fixed source schema
# - Turn a target relation plus join specs into an ordered, validated plan
# - Fail fast on configuration errors, before any row is read


from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from order_views.config import TABLE_CONFIG
from order_views.errors import ConfigurationError


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

ONE_TO_ONE = '1:1'
ONE_TO_MANY = '1:N'
MANY_TO_ONE = 'N:1'

CARDINALITIES = [ONE_TO_ONE, ONE_TO_MANY, MANY_TO_ONE]

INNER = 'inner'
OUTER = 'outer'

GEO_RESOLUTIONS = ['first', 'mean']

# right relation -> (left relation, left key, right key, cardinality)
RELATIONSHIPS: Dict[str, Tuple[str, str, str, str]] = {
    'order_items': ('orders', 'order_id', 'order_id', ONE_TO_MANY),
    'order_reviews': ('orders', 'order_id', 'order_id', ONE_TO_MANY),
    'order_payments': ('orders', 'order_id', 'order_id', ONE_TO_MANY),
    'customers': ('orders', 'customer_id', 'customer_id', ONE_TO_ONE),
    'products': ('order_items', 'product_id', 'product_id', MANY_TO_ONE),
    'sellers': ('order_items', 'seller_id', 'seller_id', MANY_TO_ONE),
    'category_translation': (
        'products', 'product_category_name', 'product_category_name', MANY_TO_ONE
        ),
}

# Zip prefix is not unique in geolocation; callers choose a resolution
GEOLOCATION_SOURCES = {
    'customers': ('customer_zip_code_prefix', 'customer'),
    'sellers': ('seller_zip_code_prefix', 'seller'),
}


# ------------------------------------------------------------
# PLAN TYPES
# ------------------------------------------------------------

@dataclass(frozen=True)
class JoinSpec:
    relation: str
    cardinality: Optional[str] = None
    optionality: str = OUTER
    left: Optional[str] = None
    resolve: Optional[str] = None


@dataclass(frozen=True)
class JoinStep:
    relation: str
    left_relation: str
    left_key: str
    right_key: str
    cardinality: str
    how: str
    resolve: Optional[str] = None
    alias: Optional[str] = None

    @property
    def fans_out(self) -> bool:

        return self.cardinality == ONE_TO_MANY and self.resolve is None


@dataclass(frozen=True)
class JoinPlan:
    target: str
    steps: Tuple[JoinStep, ...]

    @property
    def relations(self) -> List[str]:

        return [self.target] + [step.relation for step in self.steps]

    @property
    def fans_out(self) -> bool:

        return any(step.fans_out for step in self.steps)


# ------------------------------------------------------------
# PLANNING
# ------------------------------------------------------------

def _resolve_step(spec: JoinSpec) -> JoinStep:
    """
    Validate one spec against the schema and turn it into a step.
    """

    if spec.cardinality is None:
        raise ConfigurationError(f'{spec.relation}: join spec has no cardinality')

    if spec.cardinality not in CARDINALITIES:
        raise ConfigurationError(
            f'{spec.relation}: unknown cardinality `{spec.cardinality}`, use one of {CARDINALITIES}'
            )

    if spec.optionality not in (INNER, OUTER):
        raise ConfigurationError(
            f'{spec.relation}: unknown optionality `{spec.optionality}`'
            )

    how = 'inner' if spec.optionality == INNER else 'left'

    if spec.relation == 'geolocation':
        if spec.left not in GEOLOCATION_SOURCES:
            raise ConfigurationError(
                f'geolocation: left relation must be one of {list(GEOLOCATION_SOURCES)}'
                )

        if spec.cardinality != ONE_TO_MANY:
            raise ConfigurationError('geolocation: zip prefix is non-unique, cardinality must be 1:N')

        if spec.resolve not in GEO_RESOLUTIONS:
            raise ConfigurationError(
                f'geolocation: non-unique join must be resolved with one of {GEO_RESOLUTIONS}'
                )

        left_key, alias = GEOLOCATION_SOURCES[spec.left]

        return JoinStep(
            relation='geolocation',
            left_relation=spec.left,
            left_key=left_key,
            right_key='geolocation_zip_code_prefix',
            cardinality=ONE_TO_MANY,
            how=how,
            resolve=spec.resolve,
            alias=alias,
        )

    if spec.relation not in RELATIONSHIPS:
        raise ConfigurationError(f'{spec.relation}: no join path declared for relation')

    left_relation, left_key, right_key, cardinality = RELATIONSHIPS[spec.relation]

    if spec.left is not None and spec.left != left_relation:
        raise ConfigurationError(
            f'{spec.relation}: joins from {left_relation}, not {spec.left}'
            )

    if spec.cardinality != cardinality:
        raise ConfigurationError(
            f'{spec.relation}: declared cardinality {spec.cardinality} '
            f'contradicts schema cardinality {cardinality}'
            )

    if spec.resolve is not None:
        raise ConfigurationError(f'{spec.relation}: only geolocation joins take a resolution')

    return JoinStep(
        relation=spec.relation,
        left_relation=left_relation,
        left_key=left_key,
        right_key=right_key,
        cardinality=cardinality,
        how=how,
    )


def plan_joins(target: str, specs: Sequence[JoinSpec]) -> JoinPlan:
    """
    Order the joins so each step's left relation is already joined.

    Steps otherwise keep the caller's order. No I/O happens here.
    """

    if target not in TABLE_CONFIG:
        raise ConfigurationError(f'unknown target relation: {target}')

    pending = [_resolve_step(spec) for spec in specs]

    seen = set()
    for step in pending:
        identity = (step.relation, step.alias)
        if step.relation == target or identity in seen:
            raise ConfigurationError(f'{step.relation}: relation joined more than once')

        seen.add(identity)

    joined = {target}
    ordered: List[JoinStep] = []

    while pending:
        ready = next((s for s in pending if s.left_relation in joined), None)
        if ready is None:
            missing = sorted({s.left_relation for s in pending})
            raise ConfigurationError(
                f'unreachable join(s): left relation(s) {missing} never joined to {target}'
                )

        pending.remove(ready)
        ordered.append(ready)
        if ready.alias is None:
            joined.add(ready.relation)

    return JoinPlan(target=target, steps=tuple(ordered))


# =============================================================================
# END OF SCRIPT
# =============================================================================
