"""
Data Model

Immutable records passed between pipeline stages.

Arrays held by these records are float64 and flagged read-only, so a stage
can never mutate the output of an earlier stage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

SCHEMA_VERSION: int = 3

FEATURE_NAMES: Tuple[str, ...] = (
    'rms',
    'dominant_frequency',
    'spectral_rolloff',
    'spectral_centroid',
    'spectral_bandwidth',
)


def _frozen_array(values) -> np.ndarray:
    array = np.array(values, dtype=np.float64)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class SampleBuffer:
    """
    Mono PCM samples produced by an audio source.

    Attributes:
        samples: 1D float array, nominally in [-1.0, 1.0]
        sample_rate: Sample rate in Hz
        supplied_duration: Duration reported by the source (None = derive
            from sample count)
    """
    samples: np.ndarray
    sample_rate: float
    supplied_duration: Optional[float] = None

    def __post_init__(self) -> None:
        samples = _frozen_array(self.samples)
        if samples.ndim != 1:
            raise ValueError(f"SampleBuffer expects mono samples, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        object.__setattr__(self, 'samples', samples)

    @property
    def sample_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def derived_duration(self) -> float:
        return self.sample_count / float(self.sample_rate)

    @property
    def duration(self) -> float:
        """Supplied duration if the source reported one, else sampleCount / sampleRate."""
        if self.supplied_duration is not None:
            return float(self.supplied_duration)
        return self.derived_duration


@dataclass(frozen=True)
class FeatureSeries:
    """
    Named per-frame feature sequences sharing one length.

    Used both for analysis-frame features and for series resampled to the
    output event rate.
    """
    values: Dict[str, np.ndarray]

    def __post_init__(self) -> None:
        frozen = {name: _frozen_array(seq) for name, seq in self.values.items()}
        lengths = {len(seq) for seq in frozen.values()}
        if len(lengths) > 1:
            raise ValueError(f"Feature sequences must share one length, got {sorted(lengths)}")
        object.__setattr__(self, 'values', frozen)

    def __getitem__(self, name: str) -> np.ndarray:
        return self.values[name]

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    @property
    def names(self) -> List[str]:
        return list(self.values)

    @property
    def frame_count(self) -> int:
        for seq in self.values.values():
            return len(seq)
        return 0


class HapticType(str, Enum):
    """Categorical weight of a haptic event."""
    HEAVY = 'heavy'
    MEDIUM = 'medium'
    LIGHT = 'light'
    SOFT = 'soft'


@dataclass(frozen=True)
class HapticEvent:
    """
    One haptic tap.

    Attributes:
        time: Event time in seconds
        intensity: Actuator strength in [0, 1]
        sharpness: Actuator sharpness in [0, 1]
        type: Categorical weight
    """
    time: float
    intensity: float
    sharpness: float
    type: HapticType

    def to_dict(self) -> Dict:
        return {
            'time': float(self.time),
            'intensity': float(self.intensity),
            'sharpness': float(self.sharpness),
            'type': self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'HapticEvent':
        return cls(
            time=float(data['time']),
            intensity=float(data['intensity']),
            sharpness=float(data['sharpness']),
            type=HapticType(data['type']),
        )


@dataclass(frozen=True)
class HapticMetadata:
    """
    Stream header.

    Attributes:
        fps: Output event rate
        duration: Source duration in seconds
        total_frames: floor(duration * fps)
        version: Schema revision
    """
    fps: int
    duration: float
    total_frames: int
    version: int = SCHEMA_VERSION

    def to_dict(self) -> Dict:
        return {
            'version': int(self.version),
            'fps': int(self.fps),
            'duration': float(self.duration),
            'totalFrames': int(self.total_frames),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'HapticMetadata':
        return cls(
            fps=int(data['fps']),
            duration=float(data['duration']),
            total_frames=int(data['totalFrames']),
            version=int(data.get('version', SCHEMA_VERSION)),
        )


@dataclass(frozen=True)
class HapticStream:
    """Final pipeline output: metadata plus events ordered by time."""
    metadata: HapticMetadata
    events: Tuple[HapticEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'events', tuple(self.events))

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[HapticEvent]:
        return iter(self.events)

    @property
    def times(self) -> np.ndarray:
        return np.array([event.time for event in self.events], dtype=np.float64)

    def to_dict(self, events_key: str = 'events') -> Dict:
        return {
            'metadata': self.metadata.to_dict(),
            events_key: [event.to_dict() for event in self.events],
        }
