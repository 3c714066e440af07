"""
현금 서랍 CLI

실행 방법:
    python -m drawer status
    python -m drawer open 100000 --notes "오전 시재"
    python -m drawer move OUT 5000 --reason "잔돈 교환"
    python -m drawer move ADJUSTMENT 300 --direction decrease
    python -m drawer close --count 10000:10 --count 1000:5
    python -m drawer movements --type SALE --from 2026-10-01 --to 2026-10-16
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Sequence, TextIO

from adapters.console.notifier import LoggingNotifier
from adapters.console.prompt import AutoConfirmPrompt, ConsolePrompt
from adapters.interfaces import IConfirmationPrompt
from core.config.loader import SettingsLoadError, load_settings
from core.domain.models import CashCount
from core.ledger.filters import FilterState, parse_date_bound, with_filters, with_page, with_page_size
from core.logging import setup_logging
from core.types import AdjustmentDirection, MovementType, SortDirection, SortKey
from core.utils.amounts import format_amount
from core.utils.timezone import format_local
from drawer.bootstrap import DrawerApp, build_drawer
from drawer.dashboard import CashDrawer
from drawer.workflow.mutations import MutationResult, MutationStatus

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def parse_count(text: str) -> CashCount:
    """권종:수량 문자열 파싱 (예: 10000:3)"""
    denomination, sep, quantity = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"권종:수량 형식이어야 합니다: {text}")
    try:
        return CashCount(Decimal(denomination.strip()), int(quantity.strip()))
    except (InvalidOperation, ValueError) as e:
        raise argparse.ArgumentTypeError(f"잘못된 실사 값: {text}") from e


def build_parser() -> argparse.ArgumentParser:
    """CLI 파서 생성"""
    parser = argparse.ArgumentParser(prog="drawer", description="현금 서랍 원장 관리")
    parser.add_argument("--config", type=Path, default=None, help="settings.yaml 경로")
    parser.add_argument("--yes", action="store_true", help="확인 프롬프트 자동 승인")
    parser.add_argument("--verbose", action="store_true", help="콘솔 DEBUG 로그")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="현재 세션, 잔액, 요약, 지표")
    sub.add_parser("alerts", help="세션 경고 목록")

    open_cmd = sub.add_parser("open", help="세션 개시")
    open_cmd.add_argument("amount", help="개시 금액")
    open_cmd.add_argument("--notes", default=None)

    close_cmd = sub.add_parser("close", help="세션 마감")
    close_cmd.add_argument("amount", nargs="?", default=None, help="마감 금액 (실사 사용 시 생략 가능)")
    close_cmd.add_argument(
        "--count",
        dest="counts",
        action="append",
        type=parse_count,
        default=[],
        metavar="DENOM:QTY",
        help="권종별 실사 (여러 번 지정 가능)",
    )
    close_cmd.add_argument("--notes", default=None)

    move_cmd = sub.add_parser("move", help="이동 등록")
    move_cmd.add_argument("type", type=str.upper, choices=[t.value for t in MovementType])
    move_cmd.add_argument("amount")
    move_cmd.add_argument(
        "--direction",
        choices=[d.value for d in AdjustmentDirection],
        default=None,
        help="ADJUSTMENT 방향",
    )
    move_cmd.add_argument("--reason", default=None)
    move_cmd.add_argument("--reference-type", default=None)
    move_cmd.add_argument("--reference-id", default=None)

    list_cmd = sub.add_parser("movements", help="이동 목록")
    list_cmd.add_argument("--type", default="all")
    list_cmd.add_argument("--search", default="")
    list_cmd.add_argument("--from", dest="date_from", type=parse_date_bound, default=None)
    list_cmd.add_argument("--to", dest="date_to", type=parse_date_bound, default=None)
    list_cmd.add_argument("--min", dest="amount_min", default=None)
    list_cmd.add_argument("--max", dest="amount_max", default=None)
    list_cmd.add_argument("--mine", action="store_true", help="내가 등록한 이동만")
    list_cmd.add_argument("--user-id", default=None, help="현재 사용자 ID (--mine 판정용)")
    list_cmd.add_argument("--reference-type", default="all")
    list_cmd.add_argument("--sort", choices=[k.value for k in SortKey], default=SortKey.DATE.value)
    list_cmd.add_argument("--asc", action="store_true")
    list_cmd.add_argument("--page", type=int, default=1)
    list_cmd.add_argument("--page-size", type=int, default=None)

    return parser


def filter_state_from_args(args: argparse.Namespace) -> FilterState:
    """movements 인자 → FilterState"""
    state = with_filters(
        FilterState(),
        type=args.type,
        search=args.search,
        date_from=args.date_from,
        date_to=args.date_to,
        amount_min=args.amount_min,
        amount_max=args.amount_max,
        created_by_me=args.mine,
        reference_type=args.reference_type,
        sort_key=args.sort,
        sort_dir=SortDirection.ASC if args.asc else SortDirection.DESC,
    )
    if args.page_size is not None:
        state = with_page_size(state, args.page_size)
    return with_page(state, args.page)


# -------------------------------------------------------------------------
# 출력
# -------------------------------------------------------------------------


def print_status(drawer: CashDrawer, out: TextIO) -> None:
    session = drawer.session
    if session is None:
        print("열린 현금 세션이 없습니다", file=out)
        return

    summary = drawer.summary
    insights = drawer.insights()
    print(f"세션: {session.id} ({session.status.value})", file=out)
    print(f"개시: {format_local(session.opened_at, drawer.tz)}  개시 금액: {format_amount(session.opening_amount)}", file=out)
    print(f"현재 잔액: {format_amount(drawer.balance)}", file=out)
    print(
        f"입금 {format_amount(summary.total_in)} / 출금 {format_amount(summary.total_out)} / "
        f"판매 {format_amount(summary.total_sale)} / 반품 {format_amount(summary.total_return)} / "
        f"조정 {format_amount(summary.total_adjustment)}",
        file=out,
    )
    print(
        f"오늘 유입 {format_amount(insights.today_inflows)} / 유출 {format_amount(insights.today_outflows)}"
        f"  위험 점수 {insights.risk_score}",
        file=out,
    )


def print_movements(drawer: CashDrawer, state: FilterState, user_id: str | None, out: TextIO) -> None:
    page = drawer.view(state, user_id)
    for movement in page.items:
        print(
            f"{format_local(movement.created_at, drawer.tz)}  {movement.type.value:<10} "
            f"{format_amount(movement.amount):>14}  {movement.reason or ''}",
            file=out,
        )
    print(f"-- {page.page}/{max(page.pages, 1)} 페이지, 총 {page.total}건", file=out)


def result_exit_code(result: MutationResult) -> int:
    if result.status == MutationStatus.SUCCEEDED:
        return EXIT_OK
    return EXIT_FAILED


# -------------------------------------------------------------------------
# 실행
# -------------------------------------------------------------------------


async def run_command(app: DrawerApp, args: argparse.Namespace, out: TextIO) -> int:
    """시작된 앱에서 서브커맨드 실행

    Returns:
        종료 코드
    """
    drawer = app.drawer

    if args.command == "status":
        print_status(drawer, out)
        return EXIT_OK

    if args.command == "alerts":
        alerts = await drawer.alerts()
        if not alerts:
            print("경고 없음", file=out)
        for alert in alerts:
            print(f"[{alert.severity.value}] {alert.title}: {alert.description}", file=out)
        return EXIT_OK

    if args.command == "movements":
        print_movements(drawer, filter_state_from_args(args), args.user_id, out)
        return EXIT_OK

    if args.command == "open":
        result = await drawer.open_session(args.amount, args.notes)
    elif args.command == "close":
        result = await drawer.close_session(args.amount, args.counts or None, args.notes)
    elif args.command == "move":
        result = await drawer.register_movement(
            args.type,
            args.amount,
            direction=args.direction,
            reason=args.reason,
            reference_type=args.reference_type,
            reference_id=args.reference_id,
        )
    else:
        raise ValueError(f"알 수 없는 명령: {args.command}")

    if result.succeeded and drawer.balance is not None:
        print(f"현재 잔액: {format_amount(drawer.balance)}", file=out)
    return result_exit_code(result)


async def main_async(args: argparse.Namespace, out: TextIO = sys.stdout) -> int:
    try:
        settings = load_settings(args.config)
    except (SettingsLoadError, ValueError) as e:
        print(f"설정 로드 실패: {e}", file=sys.stderr)
        return EXIT_CONFIG

    prompt: IConfirmationPrompt = AutoConfirmPrompt() if args.yes else ConsolePrompt(stream=out)
    app = build_drawer(settings, prompt, LoggingNotifier(out))

    try:
        await app.start()
        return await run_command(app, args, out)
    except Exception as e:
        logger.error("명령 실행 실패", extra={"command": args.command, "error": str(e)}, exc_info=True)
        print(f"[ERROR] {e}", file=out)
        return EXIT_FAILED
    finally:
        await app.stop()


def main(argv: Sequence[str] | None = None) -> int:
    """CLI 진입점"""
    args = build_parser().parse_args(argv)
    setup_logging(
        "drawer",
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
    )
    return asyncio.run(main_async(args))
