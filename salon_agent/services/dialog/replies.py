"""
User-facing reply texts (pt-BR).
"""

from datetime import datetime
from typing import List, Optional, Sequence

from ...core.models import CatalogService
from ...utils.phone import PhoneNumberParser

_WEEKDAY_NAMES = ["segunda", "terça", "quarta", "quinta", "sexta", "sábado", "domingo"]

CATEGORY_EXAMPLES = "Manicure simples, Pedicure, Escova, Design de sobrancelha"


def _hello(first_name: Optional[str], fallback: str) -> str:
    return f"{fallback}, {first_name}!" if first_name else f"{fallback}!"


def _weekday_span(weekdays: Sequence[int]) -> str:
    days = sorted(set(weekdays))
    if not days:
        return ""
    if days == list(range(days[0], days[-1] + 1)) and len(days) > 1:
        return f"de {_WEEKDAY_NAMES[days[0]]} a {_WEEKDAY_NAMES[days[-1]]}"
    names = [_WEEKDAY_NAMES[d] for d in days]
    if len(names) == 1:
        return f"às {names[0]}s"
    return ", ".join(names[:-1]) + f" e {names[-1]}"


def numbered(services: List[CatalogService]) -> str:
    return "\n".join(f"{i}. {s.describe()}" for i, s in enumerate(services, start=1))


def format_date(date_iso: str) -> str:
    try:
        return datetime.strptime(date_iso, "%Y-%m-%d").strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return date_iso


# Informational

def business_hours(
    first_name: Optional[str], weekdays: Sequence[int], open_hour: int, close_hour: int
) -> str:
    prefix = f"{first_name}, f" if first_name else "F"
    return (
        f"{prefix}uncionamos {_weekday_span(weekdays)}, das {open_hour}h às {close_hour}h. "
        "Como posso ajudar no seu atendimento hoje?"
    )


# Service selection

def ask_service(first_name: Optional[str]) -> str:
    return f"{_hello(first_name, 'Ótimo')} Qual serviço você deseja agendar?"


def suggestion_list(query: str, suggestions: List[CatalogService]) -> str:
    return (
        f'Encontrei algumas opções para "{query}":\n\n{numbered(suggestions)}\n\n'
        "Responda com o número da opção desejada ou digite o nome do serviço."
    )


def category_not_bookable(first_name: Optional[str], query: str) -> str:
    prefix = f"{first_name}, e" if first_name else "E"
    return (
        f'{prefix}ntendi que você quer algo em "{query}". "{query}" é uma categoria. '
        f"Pode me dizer qual serviço específico deseja? Exemplos: {CATEGORY_EXAMPLES}."
    )


def service_not_found(query: str) -> str:
    return (
        f'Não encontrei o serviço "{query}". '
        "Pode me dizer o nome do serviço que deseja agendar?"
    )


def invalid_choice(suggestions: List[CatalogService]) -> str:
    return (
        f"Opção inválida. Escolha um número de 1 a {len(suggestions)}:\n\n"
        f"{numbered(suggestions)}"
    )


def stale_service(service_name: str, suggestions: List[CatalogService]) -> str:
    if not suggestions:
        return (
            f'O serviço "{service_name}" não está mais disponível para agendamento. '
            "Pode me dizer qual outro serviço deseja?"
        )
    return (
        f'O serviço "{service_name}" não está mais disponível. Veja as opções atuais:\n\n'
        f"{numbered(suggestions)}\n\nResponda com o número da opção desejada."
    )


def catalog_unavailable() -> str:
    return (
        "Tive um problema para consultar nossos serviços agora. "
        "Pode repetir o nome do serviço em instantes?"
    )


# Date and time

def ask_date(service_name: str) -> str:
    return f"Perfeito! Para qual data você deseja agendar {service_name}?"


def unparsed_date() -> str:
    return "Não consegui interpretar a data. Poderia me informar novamente? (ex: 25/03 ou amanhã)"


def ask_time() -> str:
    return "E qual horário prefere? (ex: 14:30)"


def unparsed_time() -> str:
    return "Não consegui interpretar data/horário. Poderia me confirmar o horário? (ex: 14:30)"


def unavailable(reason: Optional[str]) -> str:
    reason = (reason or "Esse horário não está disponível").rstrip(".")
    return (
        f"{reason}. Pode sugerir outro horário? "
        "Se preferir, posso verificar por profissional específico."
    )


def ask_phone() -> str:
    return "Para concluir, me informe o seu telefone com DDD."


# Booking outcome

def booking_confirmed(service_name: str, date_iso: str, time: str, booking_id: str) -> str:
    return (
        "Perfeito! Seu agendamento está confirmado:\n\n"
        f"*Serviço:* {service_name}\n"
        f"*Data:* {format_date(date_iso)}\n"
        f"*Horário:* {time}\n"
        f"*ID:* {booking_id}\n\n"
        "Te esperamos! Qualquer dúvida, estou aqui. 😊"
    )


def booking_not_confirmed() -> str:
    return (
        "Ops! Houve um problema ao confirmar seu agendamento. "
        "Tente novamente ou entre em contato conosco."
    )


def booking_failed() -> str:
    return (
        "Não consegui concluir o agendamento agora. Pode tentar novamente em "
        "alguns instantes ou falar com um atendente?"
    )


# Registration

def ask_full_name(first_name: Optional[str]) -> str:
    return f"{_hello(first_name, 'Claro')} Para seu cadastro, qual é seu nome completo?"


def ask_registration_phone() -> str:
    return "Perfeito, poderia me informar seu telefone (com DDD)?"


def registration_done(first_name: Optional[str], phone: str) -> str:
    greeting = f"{first_name}, seu cadastro" if first_name else "Cadastro"
    number = PhoneNumberParser.format_for_display(phone)
    return (
        f"{greeting} com o telefone {number} foi localizado/criado com sucesso! "
        "Posso te ajudar com agendamento agora?"
    )


def registration_failed() -> str:
    return "Tive um problema para criar seu cadastro. Pode tentar novamente em instantes, por favor?"
