from enum import Enum


class CurvePreset(Enum):
    ONE_BILLION_TOKENS = "1B tokens"
    TEN_BILLION_TOKENS = "10B tokens"
    LARGE_RESERVES = "Large reserves"
    NINE_HUNDRED_MILLION_TOKENS = "900M tokens"
    EIGHT_HUNDRED_FIFTY_MILLION_TOKENS = "850M tokens"
    EIGHT_HUNDRED_ONE_MILLION_TOKENS = "801M tokens"

    @classmethod
    def from_str(cls, preset_str: str) -> "CurvePreset":
        """
        Convert a string to a CurvePreset enum. Accepts the enum name or the display label.
        :param preset_str: str
        :return: CurvePreset or NotImplementedError
        """
        for preset in cls:
            if preset_str.upper() == preset.name or preset_str.lower() == preset.value.lower():
                return preset
        raise NotImplementedError(f"No curve preset enum for {preset_str}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()


class CurveParameterField(Enum):
    VIRTUAL_SOL_RESERVES = "virtual_sol_reserves"
    VIRTUAL_TOKEN_RESERVES = "virtual_token_reserves"

    @classmethod
    def from_str(cls, field_str: str) -> "CurveParameterField":
        if field_str.upper() == CurveParameterField.VIRTUAL_SOL_RESERVES.name:
            return CurveParameterField.VIRTUAL_SOL_RESERVES
        elif field_str.upper() == CurveParameterField.VIRTUAL_TOKEN_RESERVES.name:
            return CurveParameterField.VIRTUAL_TOKEN_RESERVES
        else:
            raise NotImplementedError(f"No editable curve parameter enum for {field_str}")

    def __str__(self):
        return self.name

    def __repr__(self):
        return self.__str__()
