from .next_resolver import NextCapsuleResolver
from .sampler import PreferenceSampler, SAMPLE_POOL_SIZE
from .save_state import SaveStateJoiner

__all__ = ["NextCapsuleResolver", "PreferenceSampler", "SaveStateJoiner", "SAMPLE_POOL_SIZE"]
