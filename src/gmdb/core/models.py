from enum import Enum

from pydantic import BaseModel


_COLUMNS: dict[str, tuple[str, ...]] = {
    "title.principals": (
        "tconst",
        "ordering",
        "nconst",
        "category",
        "job",
        "characters",
    ),
    "name.basics": (
        "nconst",
        "primaryName",
        "birthYear",
        "deathYear",
        "primaryProfession",
        "knownForTitles",
    ),
    "title.akas": (
        "titleId",
        "ordering",
        "title",
        "region",
        "language",
        "types",
        "attributes",
        "isOriginalTitle",
    ),
    "title.basics": (
        "tconst",
        "titleType",
        "primaryTitle",
        "originalTitle",
        "isAdult",
        "startYear",
        "endYear",
        "runtimeMinutes",
        "genres",
    ),
    "title.crew": ("tconst", "directors", "writers"),
    "title.episode": ("tconst", "parentTconst", "seasonNumber", "episodeNumber"),
    "title.ratings": ("tconst", "averageRating", "numVotes"),
}


class Kind(str, Enum):
    """Dataset dump tables and their header layout."""

    TITLE_PRINCIPALS = "title.principals"
    NAME_BASICS = "name.basics"
    TITLE_AKAS = "title.akas"
    TITLE_BASICS = "title.basics"
    TITLE_CREW = "title.crew"
    TITLE_EPISODE = "title.episode"
    TITLE_RATINGS = "title.ratings"

    @property
    def file_name(self) -> str:
        return f"{self.value}.tsv.gz"

    @property
    def columns(self) -> tuple[str, ...]:
        return _COLUMNS[self.value]

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @classmethod
    def from_name(cls, name: str) -> "Kind":
        """Resolve a kind from its dotted name, enum name or dump file name."""
        key = name.strip()
        for suffix in (".tsv.gz", ".tsv"):
            if key.endswith(suffix):
                key = key[: -len(suffix)]
                break
        for kind in cls:
            if key == kind.value or key.upper() == kind.name:
                return kind
        raise ValueError(f"Unknown dataset kind: {name!r}")


class StreamStats(BaseModel):
    """Running counters for one assembled value stream."""

    chunks: int = 0
    bytes: int = 0
    values: int = 0
    empty_values: int = 0
    spanning_values: int = 0  # assembled from more than one fragment
    max_value_len: int = 0

    def record_chunk(self, size: int) -> None:
        self.chunks += 1
        self.bytes += size

    def record_value(self, size: int, fragments: int) -> None:
        self.values += 1
        if size == 0:
            self.empty_values += 1
        if fragments > 1:
            self.spanning_values += 1
        if size > self.max_value_len:
            self.max_value_len = size
