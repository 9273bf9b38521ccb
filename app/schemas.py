# app/schemas.py
# Role: Pydantic request bodies for the JSON endpoints.

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

MatchType = Literal["contains", "starts_with", "exact"]


class RuleIn(BaseModel):
    keyword: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    match_type: MatchType = "contains"


class RuleUpdate(BaseModel):
    keyword: Optional[str] = None
    category: Optional[str] = None
    match_type: Optional[MatchType] = None


class BulkCategoryUpdate(BaseModel):
    transaction_ids: List[str]
    category: str = Field(..., min_length=1)
    # When set, also create a "contains" rule for future imports
    keyword: Optional[str] = None


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    color: str = "zinc"


class CategoryMigrate(BaseModel):
    target: str = Field(..., min_length=1)


class TeamMemberIn(BaseModel):
    name: str = Field(..., min_length=1)
    role: str = ""
    base_salary: float = 0.0
    beneficiary_account: Optional[str] = None


class CompensationIn(BaseModel):
    period: str
    variable_amount: float = 0.0
    note: str = ""


class AnalyzeRequest(BaseModel):
    csv_content: str = ""
    file_name: str = ""
    period: Optional[str] = None
