from __future__ import annotations

TYPE_DEPOSIT = "deposit"
TYPE_WITHDRAWAL = "withdrawal"
TYPE_DISBURSEMENTS = "disbursements"
TYPE_REWARD = "reward"

TRANSACTION_TYPES: dict[str, str] = {
    TYPE_DEPOSIT: "Dépôt",
    TYPE_WITHDRAWAL: "Retrait",
    TYPE_DISBURSEMENTS: "Disbursements",
    TYPE_REWARD: "Reward",
}

TRANSACTION_STATUSES: dict[str, str] = {
    "init_payment": "En attente",
    "pending": "En cours",
    "accept": "Accepté",
    "reject": "Rejeté",
    "timeout": "Expiré",
    "error": "Erreur",
}

SOURCES: dict[str, str] = {
    "mobile": "Mobile",
    "web": "Web",
    "bot": "Bot",
}

NETWORKS: dict[str, str] = {
    "mtn": "MTN",
    "moov": "MOOV",
    "card": "Carte",
    "sbin": "Celtis",
    "orange": "Orange",
    "wave": "Wave",
    "togocom": "Togocom",
    "airtel": "Airtel",
    "mpesa": "M-Pesa",
    "afrimoney": "Afrimoney",
}

API_CONNECT = "connect"

DEPOSIT_APIS: dict[str, str] = {
    API_CONNECT: "Blaffa Connect",
}


def _normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def _label(table: dict[str, str], value: str | None) -> str:
    return table.get(_normalize(value), value or "")


def transaction_type_label(value: str | None) -> str:
    return _label(TRANSACTION_TYPES, value)


def transaction_status_label(value: str | None) -> str:
    return _label(TRANSACTION_STATUSES, value)


def source_label(value: str | None) -> str:
    return _label(SOURCES, value)


def network_label(value: str | None) -> str:
    return _label(NETWORKS, value)


def deposit_api_label(value: str | None) -> str:
    return _label(DEPOSIT_APIS, value)
