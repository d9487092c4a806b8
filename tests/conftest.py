# tests/conftest.py

import pytest

from corpus_easy import Corpus, Document

PAPERS = {
    "Smith_2015.txt": (
        "The oil spill spread quickly. After the spill the dispersant was applied to the "
        "surface of the water. Fish and birds were affected by the oil."
    ),
    "Lee_2017.txt": (
        "Skimming and burning removed oil from the surface. Dispersant use was limited in 2017."
    ),
    "Doe_2019.txt": "Birds recovered slowly. Fish populations returned after the spill.",
}


@pytest.fixture
def papers_dir(tmp_path):
    """Directory of plain-text papers named Author_Year.txt."""
    root = tmp_path / "papers"
    root.mkdir()
    for name, text in PAPERS.items():
        (root / name).write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def year_corpus():
    """Small corpus with integer Year docvars."""
    return Corpus(
        [
            Document("a.txt", "oil oil spill fish", {"Author": "Smith", "Year": 2015}),
            Document("b.txt", "oil bird bird", {"Author": "Lee", "Year": 2017}),
            Document("c.txt", "fish bird spill", {"Author": "Doe", "Year": 2017}),
            Document("d.txt", "dispersant oil", {"Author": "Kim", "Year": 2019}),
        ],
        meta={"language": "english"},
    )
