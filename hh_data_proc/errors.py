"""
Error Taxonomy
==============

Every exception below signals a data-contract breach or a logic bug in the
producer of the input files. None of them are recoverable per event: the
processing loop logs the event context and re-raises, aborting the run.

Per-event selection rejections are NOT errors and never raise.
"""


class ContractViolation(ValueError):
    """Base class for fatal input/vocabulary contract violations."""


class MalformedTag(ContractViolation):
    """Tag name does not split into the expected six '/'-delimited fields."""


class UnrecognizedCategory(ContractViolation):
    """Jet-category or region token outside the fixed vocabulary."""


class UnrecognizedSample(ContractViolation):
    """Sample token matches none of the known process-family markers."""


class MalformedSignalToken(ContractViolation):
    """Signal sample token whose numeric suffix (mass or klambda) cannot be parsed."""


class StratKeyOverflow(ContractViolation):
    """Stratification key would overflow 64 bits, or evaluate to zero."""


class DuplicateWeightMismatch(ContractViolation):
    """Weight consistency check across accepted tags of one event failed."""


class UnknownTagId(ContractViolation):
    """Event references a tag id missing from the auxiliary tag directory."""
