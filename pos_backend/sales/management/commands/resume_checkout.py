# sales/management/commands/resume_checkout.py

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from sales.models import CheckoutIntent
from sales.services.checkout_orchestrator import resume_checkout
from sales.services.exceptions import CheckoutError


class Command(BaseCommand):
    help = "Finish checkouts that stopped half-way (failed or stuck pending CheckoutIntents)."

    def add_arguments(self, parser):
        parser.add_argument("order_ids", nargs="*", help="Order ids to resume (default: every failed intent)")
        parser.add_argument(
            "--include-pending",
            action="store_true",
            help="Also resume intents still marked pending (e.g. the process died mid-checkout).",
        )
        parser.add_argument("--dry-run", action="store_true", help="List what would be resumed")

    def handle(self, *args, **options):
        order_ids = options.get("order_ids") or []

        if order_ids:
            qs = CheckoutIntent.objects.filter(order_id__in=order_ids)
            missing = set(order_ids) - set(qs.values_list("order_id", flat=True))
            if missing:
                raise CommandError(f"Unknown order ids: {', '.join(sorted(missing))}")
        else:
            statuses = [CheckoutIntent.STATUS_FAILED]
            if options.get("include_pending"):
                statuses.append(CheckoutIntent.STATUS_PENDING)
            qs = CheckoutIntent.objects.filter(status__in=statuses)

        qs = qs.exclude(status=CheckoutIntent.STATUS_COMPLETED).order_by("created_at")

        resumed = 0
        failed = 0

        for intent in qs:
            if options.get("dry_run"):
                self.stdout.write(f"would resume {intent.order_id} (done: {', '.join(intent.completed_steps) or '-'})")
                continue

            try:
                receipt = resume_checkout(intent=intent)
            except CheckoutError as exc:
                failed += 1
                self.stderr.write(self.style.ERROR(f"{intent.order_id}: {exc}"))
                continue

            resumed += 1
            self.stdout.write(self.style.SUCCESS(f"{intent.order_id}: completed (sale {receipt.sale_id})"))

        if not options.get("dry_run"):
            self.stdout.write(f"Resumed {resumed}, still failing {failed}.")
