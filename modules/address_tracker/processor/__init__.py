"""Address tracking orchestration.

Components:
- ChangeDetectionCoordinator: store update, diffing and change dispatch
- TrackingSession: async gate → geocode → coordinator pipeline
- TrackingReplayProcessor: ModuleProcessor replaying a recorded journey
"""

from .change_detection_coordinator import (
    ChangeDetectionCoordinator, CoordinationResult, CoordinatorState
)
from .tracking_session import TrackingSession, FixOutcome
from .tracking_replay_processor import TrackingReplayProcessor

__all__ = [
    'ChangeDetectionCoordinator', 'CoordinationResult', 'CoordinatorState',
    'TrackingSession', 'FixOutcome', 'TrackingReplayProcessor'
]
