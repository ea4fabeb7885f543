import logging
from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, List, Union

from cpcurve_core.common.enums import CurveParameterField, CurvePreset
from cpcurve_core.common.exceptions import InvalidParameterError
from cpcurve_core.common.math import to_decimal
from cpcurve_core.common.model import CurveParameters, ParameterEdit, PresetConfig


logger = logging.getLogger(__name__)


PRESETS: Dict[CurvePreset, PresetConfig] = {
    CurvePreset.ONE_BILLION_TOKENS: PresetConfig(
        CurvePreset.ONE_BILLION_TOKENS.value, Decimal("30"), Decimal("1000000000")
    ),
    CurvePreset.TEN_BILLION_TOKENS: PresetConfig(
        CurvePreset.TEN_BILLION_TOKENS.value, Decimal("300"), Decimal("10000000000")
    ),
    CurvePreset.LARGE_RESERVES: PresetConfig(
        CurvePreset.LARGE_RESERVES.value, Decimal("3000"), Decimal("100000000000")
    ),
    CurvePreset.NINE_HUNDRED_MILLION_TOKENS: PresetConfig(
        CurvePreset.NINE_HUNDRED_MILLION_TOKENS.value, Decimal("30"), Decimal("900000000")
    ),
    CurvePreset.EIGHT_HUNDRED_FIFTY_MILLION_TOKENS: PresetConfig(
        CurvePreset.EIGHT_HUNDRED_FIFTY_MILLION_TOKENS.value, Decimal("30"), Decimal("850000000")
    ),
    CurvePreset.EIGHT_HUNDRED_ONE_MILLION_TOKENS: PresetConfig(
        CurvePreset.EIGHT_HUNDRED_ONE_MILLION_TOKENS.value, Decimal("30"), Decimal("801000000")
    ),
}


class CurveParameterHelper:
    """
    Input-boundary logic for editing a CurveParameters value.

    Every operation returns a new, fully validated value. The current value is never modified,
    so a rejected edit leaves the caller with its previous parameter set.
    """

    @staticmethod
    def update_params(current: CurveParameters, **changes: Any) -> CurveParameters:
        """
        Returns 'current' with 'changes' applied.
        Raises InvalidParameterError if the resulting set is invalid.
        """
        return replace(current, **changes)

    @staticmethod
    def apply_edit(
        current: CurveParameters,
        field: Union[CurveParameterField, str],
        raw_value: Any
    ) -> ParameterEdit:
        """
        Applies a raw input value (e.g. the text of an input field) to one editable field.
        Invalid or non-numeric input is rejected and the previous params are returned.
        """
        if not isinstance(field, CurveParameterField):
            field = CurveParameterField.from_str(field)

        try:
            value = to_decimal(raw_value, field.value)
            params = CurveParameterHelper.update_params(current, **{field.value: value})
        except InvalidParameterError as e:
            logger.info("Rejected edit of %s to %r: %s", field.value, raw_value, e)
            return ParameterEdit(params=current, accepted=False, error=str(e))

        return ParameterEdit(params=params, accepted=True)

    @staticmethod
    def adjust_virtual_token_reserves(current: CurveParameters, delta: Any) -> CurveParameters:
        """
        Shifts the virtual token reserves by 'delta', never going below real_token_reserves + 1.
        """
        delta = to_decimal(delta, "delta")
        floor = current.real_token_reserves + Decimal("1")
        new_value = max(floor, current.virtual_token_reserves + delta)
        return CurveParameterHelper.update_params(current, virtual_token_reserves=new_value)

    @staticmethod
    def apply_preset(current: CurveParameters, preset: Union[CurvePreset, str]) -> CurveParameters:
        """
        Applies both virtual reserves of a preset in one step. Real reserves and the increment are kept.
        """
        if not isinstance(preset, CurvePreset):
            preset = CurvePreset.from_str(preset)
        config = PRESETS[preset]
        return CurveParameterHelper.update_params(
            current,
            virtual_sol_reserves=config.virtual_sol_reserves,
            virtual_token_reserves=config.virtual_token_reserves,
        )

    @staticmethod
    def list_presets() -> List[PresetConfig]:
        return [PRESETS[preset] for preset in CurvePreset]
