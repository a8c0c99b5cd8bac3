"""Turn dumped sequence files into mapping tasks."""

import logging
from pathlib import Path

from alignfarm.models.job import MappingTask

logger = logging.getLogger(__name__)


def _usable(path: Path) -> bool:
    return path.is_file() and path.stat().st_size > 0


def build_mapping_tasks(
    xref_dir: Path,
    dna_target: Path,
    protein_target: Path,
    methods: list[str],
) -> list[MappingTask]:
    """Pair the i-th method's query dumps with the matching target file.

    ``xref_{i}_dna.fasta`` aligns against ``dna_target`` and
    ``xref_{i}_peptide.fasta`` against ``protein_target``; missing or empty
    query files are left out.
    """
    tasks: list[MappingTask] = []
    for i, method in enumerate(methods):
        pairs = (
            (xref_dir / f"xref_{i}_dna.fasta", dna_target),
            (xref_dir / f"xref_{i}_peptide.fasta", protein_target),
        )
        for query, target in pairs:
            if _usable(query):
                tasks.append(MappingTask(method=method, query_file=query, target_file=target))
            else:
                logger.debug("No sequences in %s, nothing to map for %s", query, method)
    return tasks
