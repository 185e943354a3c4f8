from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import List, Optional, Tuple


class TrailerCategory(str, Enum):
    FLATBED = "FLATBED"
    STEP_DECK = "STEP_DECK"
    RGN = "RGN"
    LOWBOY = "LOWBOY"
    DOUBLE_DROP = "DOUBLE_DROP"
    LANDOLL = "LANDOLL"
    CONESTOGA = "CONESTOGA"
    DRY_VAN = "DRY_VAN"
    REEFER = "REEFER"
    CURTAIN_SIDE = "CURTAIN_SIDE"
    MULTI_AXLE = "MULTI_AXLE"
    SCHNABEL = "SCHNABEL"
    PERIMETER = "PERIMETER"
    STEERABLE = "STEERABLE"
    BLADE = "BLADE"


class LoadingMethod(str, Enum):
    CRANE = "crane"
    DRIVE_ON = "drive-on"
    FORKLIFT = "forklift"
    RAMP = "ramp"
    TILT = "tilt"


class PermitType(str, Enum):
    OVERSIZE_WIDTH = "OVERSIZE_WIDTH"
    OVERSIZE_HEIGHT = "OVERSIZE_HEIGHT"
    OVERSIZE_LENGTH = "OVERSIZE_LENGTH"
    OVERWEIGHT = "OVERWEIGHT"
    SUPERLOAD = "SUPERLOAD"


class AxleStatus(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    OVERLOADED = "overloaded"


class UnplacedReason(str, Enum):
    INVALID = "invalid"
    NO_SPACE = "no_space"
    WEIGHT_BUDGET = "weight_budget"


@dataclass(frozen=True)
class CargoItem:
    id: str
    description: str
    quantity: int
    length: float
    width: float
    height: float
    weight: float
    stackable: bool = False
    priority: int = 0


@dataclass(frozen=True)
class UnitItem:
    """One physical piece of a CargoItem after quantity expansion."""

    unit_id: str
    source_id: str
    source_index: int
    sequence: int
    description: str
    length: float
    width: float
    height: float
    weight: float
    stackable: bool = False
    priority: int = 0

    @property
    def footprint(self) -> float:
        return self.length * self.width


@dataclass(frozen=True)
class CargoEnvelope:
    length: float
    width: float
    height: float
    weight: float
    description: str = ""


@dataclass(frozen=True)
class TrailerSpec:
    id: str
    name: str
    category: TrailerCategory
    deck_length: float
    deck_width: float
    deck_height: float
    max_cargo_weight: float
    tare_weight: float
    max_legal_cargo_height: float
    max_legal_cargo_width: float
    loading_method: LoadingMethod
    description: str = ""
    well_length: Optional[float] = None
    commonality: int = 3

    @property
    def deck_area(self) -> float:
        return self.deck_length * self.deck_width


@dataclass(frozen=True)
class FitAnalysis:
    fits: bool
    is_legal: bool
    total_height: float
    total_weight: float
    exceeds_height: bool
    exceeds_width: bool
    exceeds_weight: bool
    exceeds_length: bool
    height_clearance: float
    width_clearance: float
    weight_clearance: float
    length_clearance: float


@dataclass(frozen=True)
class PermitRequirement:
    type: PermitType
    reason: str
    estimated_cost: float


@dataclass
class TruckRecommendation:
    trailer: TrailerSpec
    score: int
    fit: FitAnalysis
    permits: List[PermitRequirement]
    reason: str
    warnings: List[str]
    is_best_choice: bool = False


@dataclass(frozen=True)
class Placement:
    item_id: str
    description: str
    x: float
    z: float
    length: float
    width: float
    height: float
    weight: float
    rotated: bool
    sequence: int

    @property
    def center_x(self) -> float:
        return self.x + self.length / 2.0

    @property
    def center_z(self) -> float:
        return self.z + self.width / 2.0

    def overlaps(self, other, tolerance=1e-9) -> bool:
        x_overlap = self.x < other.x + other.length - tolerance and other.x < self.x + self.length - tolerance
        z_overlap = self.z < other.z + other.width - tolerance and other.z < self.z + self.width - tolerance
        return x_overlap and z_overlap


@dataclass(frozen=True)
class UnplacedItem:
    item: UnitItem
    reason: UnplacedReason
    message: str


@dataclass(frozen=True)
class OptimizationOptions:
    prioritize_weight: bool = True
    allow_rotation: bool = True
    optimize_for_balance: bool = True


@dataclass(frozen=True)
class OptimizationStats:
    items_placed: int
    items_requested: int
    weight_utilization_pct: float
    space_utilization_pct: float
    volume_utilization_pct: float
    total_weight: float
    center_of_gravity_x: float


@dataclass
class OptimizationResult:
    trailer: TrailerSpec
    placements: List[Placement]
    unplaced: List[UnplacedItem]
    stats: OptimizationStats
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.unplaced


@dataclass(frozen=True)
class LoadingStep:
    step: int
    item_id: str
    description: str
    position: str
    weight: float
    rotated: bool
    text: str


@dataclass(frozen=True)
class AxleWeight:
    name: str
    weight: float
    limit: float
    percentage: float
    status: AxleStatus


@dataclass(frozen=True)
class WeightDistribution:
    steer_axle: AxleWeight
    drive_axle: AxleWeight
    trailer_axle: AxleWeight
    total_weight: float
    gross_limit: float
    gross_percentage: float
    gross_status: AxleStatus
    balance_ratio: float
    cargo_weight: float
    cargo_cg: float

    @property
    def axles(self) -> Tuple[AxleWeight, AxleWeight, AxleWeight]:
        return (self.steer_axle, self.drive_axle, self.trailer_axle)


@dataclass
class TrailerLoad:
    index: int
    items: List[UnitItem] = field(default_factory=list)
    total_weight: float = 0.0
    total_footprint: float = 0.0

    def add(self, item: UnitItem) -> None:
        self.items.append(item)
        self.total_weight += item.weight
        self.total_footprint += item.footprint


@dataclass
class SplitResult:
    loads: List[TrailerLoad]
    rejected: List[UnplacedItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def total_trailers(self) -> int:
        return len(self.loads)


@dataclass(frozen=True)
class TrailerEstimate:
    count: int
    by_weight: int
    by_space: int


@dataclass
class PlannedTrailerLoad:
    load: TrailerLoad
    optimization: OptimizationResult
    weight_distribution: WeightDistribution
    fit: Optional[FitAnalysis]
    warnings: List[str] = field(default_factory=list)


@dataclass
class MultiTrailerPlan:
    trailer: TrailerSpec
    estimate: TrailerEstimate
    loads: List[PlannedTrailerLoad]
    rejected: List[UnplacedItem]
    warnings: List[str] = field(default_factory=list)

    @property
    def total_trailers(self) -> int:
        return len(self.loads)


@dataclass
class FleetLoad:
    """One truck of a mixed-fleet plan and the trailer picked for it."""

    id: str
    items: List[UnitItem]
    envelope: CargoEnvelope
    recommendation: TruckRecommendation
    warnings: List[str] = field(default_factory=list)

    @property
    def is_legal(self) -> bool:
        return self.recommendation.fit.is_legal


@dataclass
class FleetPlan:
    loads: List[FleetLoad]
    unassigned: List[UnplacedItem]
    rejected: List[UnplacedItem]
    warnings: List[str] = field(default_factory=list)

    @property
    def total_trailers(self) -> int:
        return len(self.loads)

    @property
    def total_weight(self) -> float:
        return sum(load.envelope.weight for load in self.loads)

    @property
    def total_items(self) -> int:
        return sum(len(load.items) for load in self.loads)


def to_payload(value):
    """Convert engine records into JSON-ready primitives."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        payload = {item.name: to_payload(getattr(value, item.name)) for item in fields(value)}
        for name in (
            "success",
            "center_x",
            "center_z",
            "footprint",
            "deck_area",
            "total_trailers",
            "total_weight",
            "total_items",
            "is_legal",
        ):
            if hasattr(type(value), name) and isinstance(getattr(type(value), name), property):
                payload[name] = to_payload(getattr(value, name))
        return payload
    if isinstance(value, dict):
        return {key: to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    return value
