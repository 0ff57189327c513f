import enum


class Region(str, enum.Enum):
    north = "N"
    south = "S"

    @property
    def stock_column(self) -> str:
        # Une colonne de stock par région dans stock_list
        return f"stock_{self.name}"


class JobType(str, enum.Enum):
    repair = "Repair"
    sale = "Sale"

    @property
    def code(self) -> str:
        return "REP" if self is JobType.repair else "SAL"


class JobStatus(str, enum.Enum):
    pending = "Pending"
    in_progress = "In Progress"
    completed = "Completed"
    cancelled = "Cancelled"


class MatchKind(str, enum.Enum):
    exact = "EXACT"
    fuzzy = "FUZZY"
    unmatched = "UNMATCHED"


class NegativeStockPolicy(str, enum.Enum):
    allow = "allow"
    reject = "reject"


class FuzzyTieBreak(str, enum.Enum):
    shortest = "shortest"
    alphabetical = "alphabetical"


class ActivityAction(str, enum.Enum):
    job_created = "JOB_CREATED"
    stock_unmatched = "STOCK_UNMATCHED"
