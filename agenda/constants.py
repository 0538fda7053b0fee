"""
Default catalog used to seed an empty database.

Once seeded, cities, technicians, subjects and the vacancy grid live in the
database and are edited through the API; nothing here is read at request time
except the status list, periods and permission names.
"""

STATUS_ABERTA = "Aberta"
STATUS_AGENDADA = "Agendada"
STATUS_EM_ANDAMENTO = "Em andamento"
STATUS_CONCLUIDA = "Concluída"
STATUS_CANCELADA = "Cancelada"

STATUS_POSSIVEIS = [
    STATUS_ABERTA,
    STATUS_AGENDADA,
    STATUS_EM_ANDAMENTO,
    STATUS_CONCLUIDA,
    STATUS_CANCELADA,
]

# Statuses shown inside the detailed grid
STATUS_NA_GRADE = [STATUS_AGENDADA, STATUS_EM_ANDAMENTO, STATUS_CONCLUIDA, STATUS_CANCELADA]

PERIODO_MANHA = "MANHÃ"
PERIODO_TARDE = "TARDE"
PERIODOS = [PERIODO_MANHA, PERIODO_TARDE]

# Default hour used when an OS is dropped on a period with a date only
PERIOD_DEFAULT_HOUR = {PERIODO_MANHA: 8, PERIODO_TARDE: 14}

CIDADES = [
    "PARACATU",
    "PATROCINIO",
    "PATOS DE MINAS",
    "VARJÃO DE MINAS",
    "LAGOA FORMOSA",
    "PANTANO",
    "CARMO DO PARANAIBA",
    "CRUZEIRO DA FORTALEZA",
    "SAO GONÇALO",
]
TECNICOS = ["João Silva", "Maria Souza", "Carlos Rocha", "A definir"]
ASSUNTOS = ["SEM CONEXÃO", "CONEXÃO LENTA", "AGENDAMENTO", "INSTALAÇÃO", "MANUTENÇÃO"]
TIPOS_OS = ["FIBRA", "RADIO"]


def _grid(fibra: tuple[int, int, int], radio: tuple[int, int, int]) -> dict:
    """Same capacities for both periods: (SEM CONEXÃO, CONEXÃO LENTA, AGENDAMENTO)"""

    def by_subject(caps):
        return dict(zip(["SEM CONEXÃO", "CONEXÃO LENTA", "AGENDAMENTO"], caps))

    return {
        "FIBRA": {PERIODO_MANHA: by_subject(fibra), PERIODO_TARDE: by_subject(fibra)},
        "RADIO": {PERIODO_MANHA: by_subject(radio), PERIODO_TARDE: by_subject(radio)},
    }


# ESTRUTURA_VAGAS[cidade][tipo][periodo][assunto] = capacidade
# "VARJAO DE MINAS" (no tilde) does not match the seeded city and is skipped on seed
ESTRUTURA_VAGAS = {
    "PATOS DE MINAS": _grid((5, 2, 3), (2, 1, 2)),
    "PATROCINIO": _grid((3, 1, 1), (1, 1, 1)),
    "PARACATU": _grid((3, 1, 1), (1, 1, 1)),
    "VARJAO DE MINAS": _grid((3, 1, 1), (1, 1, 1)),
    "LAGOA FORMOSA": _grid((3, 1, 1), (1, 1, 1)),
    "PANTANO": _grid((3, 1, 1), (1, 1, 1)),
    "CARMO DO PARANAIBA": _grid((3, 1, 1), (1, 1, 1)),
    "CRUZEIRO DA FORTALEZA": _grid((3, 1, 1), (1, 1, 1)),
    "SAO GONÇALO": _grid((3, 1, 1), (1, 1, 1)),
}

# (username, password, role) created when the users table is empty
DEFAULT_USERS = [
    ("hiago", "hiago123", "admin"),
    ("suporte", "suporte123", "suporte"),
    ("agendamento", "agenda123", "agendamento"),
]

ROLES = ["admin", "supervisor", "agendamento", "suporte"]


class Permissions:
    """Canonical permission names checked by require_permission"""

    AGENDA_VIEW = "agenda.view"
    AGENDA_CREATE = "agenda.create"
    AGENDA_EDIT = "agenda.edit"
    AGENDA_DELETE = "agenda.delete"
    AGENDA_ALLOCATE = "agenda.allocate"
    VAGAS_VIEW = "vagas.view"
    VAGAS_MANAGE = "vagas.manage"
    VAGAS_ADJUST = "vagas.adjust"
    CONFIG_VIEW = "config.view"
    CONFIG_EDIT = "config.edit"
    USERS_VIEW = "users.view"
    USERS_MANAGE = "users.manage"
    LOGS_VIEW = "logs.view"
    REPORTS_VIEW = "reports.view"
    REPORTS_EXPORT = "reports.export"
    SUBJECTS_MANAGE = "subjects.manage"
    TECHNICIANS_MANAGE = "technicians.manage"
    CITIES_MANAGE = "cities.manage"

    @classmethod
    def all(cls) -> list[str]:
        return [v for k, v in vars(cls).items() if k.isupper()]


P = Permissions

# Seeded only when role_permissions is empty (vagas.adjust comes from ENSURED_ROLE_PERMISSIONS)
ROLE_PERMISSIONS = {
    "admin": [p for p in P.all() if p != P.VAGAS_ADJUST],
    "supervisor": [
        P.AGENDA_VIEW,
        P.AGENDA_CREATE,
        P.AGENDA_EDIT,
        P.AGENDA_ALLOCATE,
        P.VAGAS_VIEW,
        P.VAGAS_MANAGE,
        P.CONFIG_VIEW,
        P.USERS_VIEW,
        P.LOGS_VIEW,
        P.REPORTS_VIEW,
        P.SUBJECTS_MANAGE,
        P.TECHNICIANS_MANAGE,
        P.CITIES_MANAGE,
    ],
    "agendamento": [
        P.AGENDA_VIEW,
        P.AGENDA_CREATE,
        P.AGENDA_EDIT,
        P.AGENDA_ALLOCATE,
        P.VAGAS_VIEW,
        P.REPORTS_VIEW,
    ],
    "suporte": [P.AGENDA_VIEW, P.AGENDA_EDIT, P.VAGAS_VIEW, P.CONFIG_VIEW],
}

# Inserted-or-ignored on every start so older databases receive newer permissions
ENSURED_ROLE_PERMISSIONS = [
    ("admin", P.REPORTS_VIEW),
    ("admin", P.REPORTS_EXPORT),
    ("supervisor", P.REPORTS_VIEW),
    ("agendamento", P.REPORTS_VIEW),
    ("admin", P.VAGAS_ADJUST),
    ("supervisor", P.VAGAS_ADJUST),
    ("admin", P.SUBJECTS_MANAGE),
    ("supervisor", P.SUBJECTS_MANAGE),
    ("admin", P.TECHNICIANS_MANAGE),
    ("admin", P.CITIES_MANAGE),
    ("supervisor", P.TECHNICIANS_MANAGE),
    ("supervisor", P.CITIES_MANAGE),
]
