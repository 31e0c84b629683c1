"""
Runtime settings, read from FOURTRADE_* environment variables.
"""
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from fourtrade.core.abi import BSC_CHAIN_ID, FOUR_MEME_ADDRESS
from fourtrade.core.errors import ConfigurationError
from fourtrade.core.validation import validate_address, validate_private_key, validate_rpc_url

ENV_PREFIX = "FOURTRADE_"


class TraderSettings(BaseModel):
    rpc_url: str
    private_key: str = Field(..., repr=False)
    contract_address: str = FOUR_MEME_ADDRESS
    chain_id: int = Field(BSC_CHAIN_ID, gt=0)
    # seconds the gateway polls for a receipt before reporting none
    receipt_timeout: float = Field(120.0, gt=0)
    poll_interval: float = Field(1.0, gt=0)

    model_config = {"frozen": True}

    @classmethod
    def create(cls, **values) -> "TraderSettings":
        """Validate everything up front; any problem is a ConfigurationError."""
        if "rpc_url" in values:
            values["rpc_url"] = validate_rpc_url(values["rpc_url"])
        if "private_key" in values:
            values["private_key"] = validate_private_key(values["private_key"])
        if "contract_address" in values:
            values["contract_address"] = validate_address(values["contract_address"], "contract_address")
        try:
            return cls(**values)
        except ValidationError as e:
            fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            raise ConfigurationError(f"Invalid settings: {', '.join(fields)}", {"fields": fields}) from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TraderSettings":
        environ = os.environ if environ is None else environ
        values = {}
        for field in cls.model_fields:
            raw = environ.get(ENV_PREFIX + field.upper())
            if raw is not None and raw != "":
                values[field] = raw
        return cls.create(**values)
