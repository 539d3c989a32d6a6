"""
Analysis flow: run a set of algorithms on the active dataset and reduce
the batch to a per-result view plus a winner.
"""

from typing import Iterable, List, Optional

from .errors import NetworkError, Precondition, PreconditionError, ServiceError
from .events import Outcome, OutcomeType
from .reducer import ReducedResults, reduce_results
from .shared.logger import get_logger
from .state import Operation, OrchestrationState

logger = get_logger(__name__)

DEFAULT_ALGORITHMS = ("random_forest", "decision_tree", "linear_regression", "clustering")

# Preprocessing switches share the selection UI with algorithms but are not sent
PREPROCESSING_OPTIONS = frozenset({"clean_data", "remove_outliers"})


def select_algorithms(names: Iterable[str]) -> List[str]:
    """De-duplicate a selection, keep its order and drop preprocessing options."""
    selected: List[str] = []
    for name in names:
        name = name.strip()
        if name and name not in PREPROCESSING_OPTIONS and name not in selected:
            selected.append(name)
    return selected


class AnalysisFlow:
    """Requests analyses from the remote service."""

    def __init__(self, state: OrchestrationState):
        self._state = state
        self.last_results: Optional[ReducedResults] = None

    def check_preconditions(self, algorithms: List[str]) -> None:
        """
        Raises:
            PreconditionError: Naming the first failed check
        """
        if not self._state.has_dataset:
            raise PreconditionError(Precondition.DATASET_PRESENT, "Please upload a dataset first!")
        if not self._state.connected:
            raise PreconditionError(
                Precondition.CONNECTED,
                f"Backend server is not connected. Please start the server at {self._state.client.base_url}.",
            )
        if self._state.analyzing:
            raise PreconditionError(Precondition.NOT_ANALYZING, "Analysis already in progress...")
        if not algorithms:
            raise PreconditionError(Precondition.ALGORITHMS_SELECTED, "Please select at least one algorithm!")

    async def run(self, algorithm_names: Iterable[str]) -> Outcome:
        """Run the selected algorithms.

        Returns:
            ANALYSIS_SUCCEEDED carrying the reduced view, or ANALYSIS_FAILED
            carrying the error message

        Raises:
            PreconditionError: If a precondition fails
        """
        algorithms = select_algorithms(algorithm_names)
        self.check_preconditions(algorithms)

        # flag was clear in check_preconditions
        self._state.acquire(Operation.ANALYSIS)
        reference = self._state.reference
        bus = self._state.bus
        try:
            logger.info("Running %d algorithms on %s", len(algorithms), reference)
            bus.emit(Outcome(
                type=OutcomeType.ANALYSIS_STARTED,
                data={"reference": reference, "algorithms": algorithms},
            ))

            try:
                batch = await self._state.client.analyze(reference, algorithms)
            except (NetworkError, ServiceError) as e:
                logger.error("Analysis error: %s", e.message)
                return bus.emit(Outcome(
                    type=OutcomeType.ANALYSIS_FAILED,
                    data={"reference": reference, "message": e.message},
                ))

            reduced = reduce_results(batch)
            self.last_results = reduced
            if reduced.winner:
                logger.info("Best model: %s (%s)", reduced.winner.algorithm, reduced.winner.display_score)
            return bus.emit(Outcome(
                type=OutcomeType.ANALYSIS_SUCCEEDED,
                data={"reference": reference, **reduced.to_dict()},
            ))
        finally:
            self._state.release(Operation.ANALYSIS)
