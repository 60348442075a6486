from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ProbeStatus(Enum):
    """Verdict categories for a single domain probe."""

    TAKEN = "taken"
    AVAILABLE = "available"
    ERROR = "error"  # the probe itself blew up
    UNKNOWN = "unknown"  # no method gave a decisive answer


@dataclass
class ProbeResult:
    """Result of probing one full candidate hostname."""

    domain: str
    status: ProbeStatus
    methods: list = field(default_factory=list)
    confidence: Optional[float] = None

    @property
    def available(self):
        return self.status == ProbeStatus.AVAILABLE

    def to_dict(self):
        data = {
            'domain': self.domain,
            'available': self.available,
            'status': self.status.value,
        }
        if self.methods:
            data['methods'] = list(self.methods)
        if self.confidence is not None:
            data['confidence'] = round(self.confidence, 1)
        return data


@dataclass
class AggregateResult:
    """Probe results for one base name, in extension order."""

    base_domain: str
    extensions: list = field(default_factory=list)

    @property
    def taken(self):
        return [r for r in self.extensions if r.status == ProbeStatus.TAKEN]

    @property
    def available(self):
        return [r for r in self.extensions if r.available]

    def to_dict(self):
        return {
            'baseDomain': self.base_domain,
            'extensions': [r.to_dict() for r in self.extensions],
        }
