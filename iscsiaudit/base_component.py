#!/usr/bin/env python3
"""
Base Component Class for Discovery-Processing-Housekeeping Pattern

Audit components inherit from BaseComponent: discovery reads remote state,
processing derives results from it, housekeeping acts on the results and
stores artifacts.
"""

import logging
import json
import datetime
import traceback
import uuid
from typing import Dict, List, Any, Optional, Protocol, TypedDict, Literal


class ComponentConfig(TypedDict, total=False):
    """TypedDict for component configuration."""
    component_id: str
    log_level: str


class TimestampData(TypedDict):
    """TypedDict for tracking execution timestamps."""
    start: Optional[str]
    discover_start: Optional[str]
    discover_end: Optional[str]
    process_start: Optional[str]
    process_end: Optional[str]
    housekeep_start: Optional[str]
    housekeep_end: Optional[str]
    end: Optional[str]


class StatusData(TypedDict):
    """TypedDict for component execution status."""
    success: bool
    error: Optional[str]
    message: Optional[str]


class PhaseResults(TypedDict, total=False):
    """TypedDict for phase results."""
    discovery: Dict[str, Any]
    processing: Dict[str, Any]
    housekeeping: Dict[str, Any]
    error: Optional[str]
    traceback: Optional[str]
    metadata: Dict[str, Any]


class ArtifactMetadata(TypedDict, total=False):
    """TypedDict for artifact metadata."""
    artifact_id: str
    artifact_type: str
    component_id: str
    component_name: str
    timestamp: str
    description: Optional[str]


class Artifact(TypedDict):
    """TypedDict for artifact data."""
    id: str
    type: str
    content: Any
    metadata: ArtifactMetadata


class ExecutionSummary(TypedDict):
    """TypedDict for execution summary."""
    component_id: str
    component_name: str
    status: StatusData
    timestamps: TimestampData
    phases_executed: Dict[str, bool]
    artifacts_count: int
    artifacts_stored: int


class ArtifactStore(Protocol):
    """Destination for artifacts registered during a run."""

    def store_artifact(self, artifact: Artifact) -> str: ...


Phase = Literal["discover", "process", "housekeep"]


def _now() -> str:
    return datetime.datetime.now().isoformat()


class BaseComponent:
    """
    Base class for all audit components.

    Tracks phase execution, timestamps and status, and collects artifacts
    that are handed to the artifact store at the end of housekeeping.
    Subclasses implement ``_discover``, ``_process`` and ``_housekeep``.
    """

    def __init__(self, config: ComponentConfig, logger: Optional[logging.Logger] = None,
                 artifact_store: Optional[ArtifactStore] = None) -> None:
        """
        Initialize a new component instance.

        Args:
            config: Configuration dictionary for the component
            logger: Optional logger instance (if not provided, a new one will be created)
            artifact_store: Optional store that receives artifacts during housekeeping
        """
        self.config = config
        self.component_id: str = config.get('component_id', str(uuid.uuid4()))
        self.component_name: str = self.__class__.__name__

        self.logger: logging.Logger = logger or self._setup_logger()
        self.artifact_store = artifact_store

        self.discovery_results: Dict[str, Any] = {}
        self.processing_results: Dict[str, Any] = {}
        self.housekeeping_results: Dict[str, Any] = {}

        self.artifacts: List[Artifact] = []
        self.stored_artifacts: List[str] = []

        self.phases_executed: Dict[str, bool] = {
            'discover': False,
            'process': False,
            'housekeep': False
        }

        self.timestamps: TimestampData = {
            'start': None,
            'discover_start': None,
            'discover_end': None,
            'process_start': None,
            'process_end': None,
            'housekeep_start': None,
            'housekeep_end': None,
            'end': None
        }

        self.status: StatusData = {
            'success': False,
            'error': None,
            'message': None
        }

        self.logger.debug(f"Initialized {self.component_name} (ID: {self.component_id})")

    def _setup_logger(self) -> logging.Logger:
        """
        Set up a logger for this component.

        Returns:
            A configured logger instance
        """
        logger = logging.getLogger(self.component_name)
        if not logger.handlers and not logging.getLogger().handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
            logger.setLevel(getattr(logging, str(self.config.get('log_level', 'INFO')).upper(), logging.INFO))
        return logger

    def _run_phase(self, phase: Phase, label: str, body) -> Dict[str, Any]:
        self.timestamps[f'{phase}_start'] = _now()
        self.logger.info(f"Starting {label} phase for {self.component_name}")

        try:
            results = body()
        except Exception as e:
            self.logger.error(f"Error during {label} phase: {str(e)}")
            self.logger.debug(traceback.format_exc())
            self.status['success'] = False
            self.status['error'] = str(e)
            self.status['message'] = f"{label.capitalize()} phase failed: {str(e)}"

            # Update timestamp even on failure
            self.timestamps[f'{phase}_end'] = _now()
            raise

        self.phases_executed[phase] = True
        self.timestamps[f'{phase}_end'] = _now()
        self.logger.info(f"{label.capitalize()} phase completed for {self.component_name}")
        return results

    def discover(self) -> Dict[str, Any]:
        """
        Discovery phase: read the current remote state without making changes.

        Returns:
            Dictionary of discovery results
        """
        def body() -> Dict[str, Any]:
            self.discovery_results = self._discover()
            return self.discovery_results

        return self._run_phase('discover', 'discovery', body)

    def process(self) -> Dict[str, Any]:
        """
        Processing phase: derive results from the discovered state.

        Returns:
            Dictionary of processing results
        """
        if not self.phases_executed['discover']:
            self.logger.warning("Processing without prior discovery, running discovery first")
            self.discover()

        def body() -> Dict[str, Any]:
            self.processing_results = self._process()
            return self.processing_results

        return self._run_phase('process', 'processing', body)

    def housekeep(self) -> Dict[str, Any]:
        """
        Housekeeping phase: act on the processing results and store artifacts.

        Returns:
            Dictionary of housekeeping results
        """
        if not self.phases_executed['process']:
            self.logger.warning("Housekeeping without prior processing may lead to unexpected results")

        def body() -> Dict[str, Any]:
            self.housekeeping_results = self._housekeep()
            if self.artifacts:
                self._store_artifacts()
            return self.housekeeping_results

        return self._run_phase('housekeep', 'housekeeping', body)

    def _discover(self) -> Dict[str, Any]:
        self.logger.warning(f"Default discovery implementation called for {self.component_name}")
        return {}

    def _process(self) -> Dict[str, Any]:
        self.logger.warning(f"Default processing implementation called for {self.component_name}")
        return {}

    def _housekeep(self) -> Dict[str, Any]:
        self.logger.warning(f"Default housekeeping implementation called for {self.component_name}")
        return {}

    def execute(self, phases: Optional[List[Phase]] = None) -> PhaseResults:
        """
        Execute the component lifecycle phases.

        Args:
            phases: List of phases to execute (default: all phases)

        Returns:
            Dictionary with the results of all executed phases
        """
        phases = phases or ["discover", "process", "housekeep"]
        self.timestamps['start'] = _now()
        self.logger.info(f"Executing {self.component_name} with phases: {', '.join(phases)}")

        results: PhaseResults = {}

        try:
            if "discover" in phases:
                results["discovery"] = self.discover()

            if "process" in phases:
                results["processing"] = self.process()

            if "housekeep" in phases:
                results["housekeeping"] = self.housekeep()

            self.status['success'] = True
            self.status['message'] = "Execution completed successfully"

        except Exception as e:
            # Status was updated by the phase that failed
            results["error"] = str(e)
            results["traceback"] = traceback.format_exc()

        finally:
            self.timestamps['end'] = _now()

            results["metadata"] = {
                "component_id": self.component_id,
                "component_name": self.component_name,
                "timestamps": self.timestamps,
                "phases_executed": self.phases_executed,
                "status": self.status
            }

            self.logger.info(f"Execution of {self.component_name} completed with status: {self.status['success']}")

        return results

    def add_artifact(self, artifact_type: str, content: Any, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Add an artifact to be stored during housekeeping.

        Args:
            artifact_type: Type of artifact (e.g., 'iscsi_audit', 'iscsi_cleanup')
            content: JSON-serialisable artifact content
            metadata: Additional metadata for the artifact

        Returns:
            Artifact ID
        """
        artifact_id = str(uuid.uuid4())

        artifact_metadata: ArtifactMetadata = {
            "artifact_id": artifact_id,
            "artifact_type": artifact_type,
            "component_id": self.component_id,
            "component_name": self.component_name,
            "timestamp": _now(),
            **(metadata or {})
        }

        self.artifacts.append({
            "id": artifact_id,
            "type": artifact_type,
            "content": content,
            "metadata": artifact_metadata
        })

        self.logger.debug(f"Added artifact: {artifact_id} ({artifact_type})")

        return artifact_id

    def _store_artifacts(self) -> None:
        """
        Hand every registered artifact to the artifact store.

        Storage failures are logged; they never fail the run.
        """
        if self.artifact_store is None:
            self.logger.debug(f"No artifact store configured, keeping {len(self.artifacts)} artifacts in memory")
            return

        for artifact in self.artifacts:
            try:
                location = self.artifact_store.store_artifact(artifact)
            except Exception as e:
                self.logger.error(f"Error storing artifact {artifact['id']} ({artifact['type']}): {e}")
                continue
            self.stored_artifacts.append(location)
            self.logger.info(f"Stored artifact {artifact['type']} at {location}")

    def get_execution_summary(self) -> ExecutionSummary:
        """
        Get a summary of this component's execution.

        Returns:
            Dictionary with execution summary
        """
        return {
            "component_id": self.component_id,
            "component_name": self.component_name,
            "status": self.status,
            "timestamps": self.timestamps,
            "phases_executed": self.phases_executed,
            "artifacts_count": len(self.artifacts),
            "artifacts_stored": len(self.stored_artifacts)
        }

    def to_json(self) -> str:
        """
        Convert component results to a JSON string.

        Returns:
            JSON string representation of the component results
        """
        results = {
            "component_id": self.component_id,
            "component_name": self.component_name,
            "timestamps": self.timestamps,
            "phases_executed": self.phases_executed,
            "status": self.status,
            "discovery_results": self.discovery_results,
            "processing_results": self.processing_results,
            "housekeeping_results": self.housekeeping_results,
            "artifacts": [
                {
                    "id": a["id"],
                    "type": a["type"],
                    "metadata": a["metadata"]
                }
                for a in self.artifacts
            ]
        }

        return json.dumps(results, indent=2, default=str)
