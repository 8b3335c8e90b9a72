from dataclasses import dataclass, field
from typing import List, Optional

from .hashing import Ring


@dataclass
class RingConfig:
    modulus: int = 256
    replicas: int = 5
    servers: List[str] = field(default_factory=list)
    max_probes: Optional[int] = None
    debug: bool = False

    host: str = "127.0.0.1"
    port: int = 8100

    def build_ring(self) -> Ring:
        return Ring(
            servers=self.servers,
            modulus=self.modulus,
            replicas=self.replicas,
            max_probes=self.max_probes,
        )
