"""
Analyzer base interface for the SoundPrint engine.

Defines the contract for all analyzers using Protocol (structural subtyping).
"""

import logging
import time
from abc import abstractmethod
from typing import Generic, Protocol, TypeVar, runtime_checkable

from soundprint.core.models import SampleSequence
from soundprint.utils.errors import AudioEngineError, AnalysisError

# Type variable for result types
T = TypeVar('T')


@runtime_checkable
class Analyzer(Protocol[T]):
    """
    Base protocol for all analyzers.

    All analyzers must implement:
    - analyze(channel) -> T
    - name property
    - version property

    A class doesn't need to explicitly inherit from Analyzer to be
    compatible - it just needs to have the required methods.
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g., 'spectral', 'rhythmic')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, channel: SampleSequence) -> T:
        """
        Analyze one channel and return a typed result.

        Raises:
            AnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Optional base class providing common functionality.

    Uses Template Method pattern - analyze() provides timing, logging and
    error wrapping; subclasses implement _analyze_impl(). Subclasses hold
    only their configuration, never per-request data.
    """

    def __init__(self, name: str, version: str):
        """
        Initialize analyzer with name and version.

        Args:
            name: Unique analyzer name
            version: Version string for tracking
        """
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Return analyzer version."""
        return self._version

    def analyze(self, channel: SampleSequence) -> T:
        """
        Template method with timing and error handling.

        Args:
            channel: SampleSequence to analyze

        Returns:
            T: Analysis result

        Raises:
            AnalysisError: If analysis fails
        """
        start_time = time.perf_counter()

        try:
            self.logger.debug(
                f"Starting analysis: {len(channel)} samples @ {channel.sample_rate} Hz"
            )

            result = self._analyze_impl(channel)

            elapsed = time.perf_counter() - start_time
            self.logger.debug(f"Analysis complete in {elapsed:.3f}s")

            return result

        except AudioEngineError:
            # Typed errors keep their meaning
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, channel: SampleSequence) -> T:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError
