from enum import Enum


class TableNames(str, Enum):
    INVITATIONS = "invitations"
    CONFIRMATIONS = "confirmations"
