from .fixed_width import BankTxtParser, ParseLineResult, parse_bank_line

PARSERS = {
    'bank_txt_v1': BankTxtParser,
}

__all__ = [
    'BankTxtParser',
    'ParseLineResult',
    'parse_bank_line',
]
