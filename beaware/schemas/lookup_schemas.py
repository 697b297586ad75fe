from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

LookupType = Literal["phone", "email", "url", "ip", "domain"]
LookupStatus = Literal["safe", "suspicious", "malicious", "unknown"]


class ApiCallDetails(BaseModel):
    method: str
    url: str
    headers: Dict[str, Any] = Field(default_factory=dict)
    body: Optional[Any] = None


class ScamLookupResult(BaseModel):
    type: str
    input: str
    provider: str
    risk_score: float = 0
    reputation: str = "unknown"
    status: LookupStatus = "unknown"
    details: Dict[str, Any] = Field(default_factory=dict)
    raw_response: Optional[Any] = None
    timestamp: str
    api_call_details: Optional[ApiCallDetails] = None

    def public_view(self) -> Dict[str, Any]:
        """Shape for end users: no raw provider payload, no outbound request."""
        return self.model_dump(exclude={"raw_response", "api_call_details"})


# ---------- request models ----------
class ScamLookupRequest(BaseModel):
    type: LookupType
    value: str = Field(..., min_length=1, max_length=2048)


class ScamCheckRequest(BaseModel):
    type: LookupType
    input: str = Field(..., min_length=1, max_length=2048)


class ScamCheckBatchRequest(BaseModel):
    checks: List[ScamCheckRequest]


class ApiConfigTestRequest(BaseModel):
    type: LookupType
    test_input: Optional[str] = None
