from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Scheduler(str, Enum):
    euler_a = "EulerA"
    euler = "Euler"
    lms = "LMS"
    heun = "Heun"
    dpm2 = "DPM2"
    dpm2_a = "DPM2A"
    dpm2_sa = "DPM2SA"
    dpm2_m = "DPM2M"
    dpm_sde = "DPMSDE"
    dpm_fast = "DPMFast"
    dpm_adaptive = "DPMAdaptive"
    lms_karras = "LMSKarras"
    dpm2_karras = "DPM2Karras"
    dpm2_a_karras = "DPM2AKarras"
    dpm2_sa_karras = "DPM2SAKarras"
    dpm2_m_karras = "DPM2MKarras"
    dpm_sde_karras = "DPMSDEKarras"
    ddim = "DDIM"
    plms = "PLMS"
    unipc = "UniPC"
    undefined = "Undefined"
    lcm = "LCM"
    ddpm = "DDPM"
    deis = "DEIS"


class AdditionalNetwork(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    strength: Optional[float] = None
    trigger_word: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("trigger_word", "triggerWord"),
    )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.strength is not None:
            payload["strength"] = self.strength
        if self.trigger_word is not None:
            payload["triggerWord"] = self.trigger_word
        return payload


class GenerationRequest(BaseModel):
    """A validated text-to-image request.

    Ranges are enforced by the field constraints; nothing is clamped.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    prompt: str = Field(..., strict=True)
    negative_prompt: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("negative_prompt", "negativePrompt"),
    )
    scheduler: Scheduler = Field(
        default=Scheduler.euler_a,
        validation_alias=AliasChoices("scheduler", "sampler"),
    )
    steps: int = Field(default=20, ge=1, le=100, strict=True)
    cfg_scale: float = Field(
        default=7.0,
        ge=1,
        le=30,
        strict=True,
        validation_alias=AliasChoices("cfg_scale", "cfgScale", "guidance_scale", "guidanceScale"),
    )
    width: int = Field(default=512, ge=64, le=1024, multiple_of=8, strict=True)
    height: int = Field(default=768, ge=64, le=1024, multiple_of=8, strict=True)
    seed: int = Field(default=-1, ge=-1, strict=True)
    clip_skip: int = Field(
        default=2,
        ge=1,
        le=10,
        strict=True,
        validation_alias=AliasChoices("clip_skip", "clipSkip"),
    )
    additional_networks: Dict[str, AdditionalNetwork] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("additional_networks", "additionalNetworks"),
    )
    model: Optional[str] = None
    wait: bool = Field(default=True, strict=True)

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("model")
    @classmethod
    def _model_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("additional_networks")
    @classmethod
    def _network_keys_not_blank(
        cls, value: Dict[str, AdditionalNetwork]
    ) -> Dict[str, AdditionalNetwork]:
        for key in value:
            if not key.strip():
                raise ValueError("network identifiers must not be empty")
        return value

    def to_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "prompt": self.prompt,
            "scheduler": self.scheduler.value,
            "steps": self.steps,
            "cfgScale": self.cfg_scale,
            "width": self.width,
            "height": self.height,
            "seed": self.seed,
            "clipSkip": self.clip_skip,
        }
        if self.negative_prompt is not None:
            params["negativePrompt"] = self.negative_prompt
        return params


@dataclass(frozen=True)
class JobHandle:
    token: str
    job_ids: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MaterializedResult:
    remote_url: Optional[str] = None
    local_path: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.remote_url is None) == (self.local_path is None):
            raise ValueError("exactly one of remote_url or local_path is required")

    def to_payload(self) -> Dict[str, str]:
        if self.local_path is not None:
            return {"path": self.local_path}
        return {"remoteUrl": str(self.remote_url)}


class GenerationOutcome(BaseModel):
    ok: bool
    result: Optional[Dict[str, Any]] = None
    kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, result: Dict[str, Any]) -> "GenerationOutcome":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, kind: str, message: str) -> "GenerationOutcome":
        return cls(ok=False, kind=kind, message=message)

    def error_text(self) -> str:
        return f"{self.kind}: {self.message}"
