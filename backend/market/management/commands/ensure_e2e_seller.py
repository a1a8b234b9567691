from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from market.catalog import LOCATIONS
from market.models import Profile, Role, UserRole


class Command(BaseCommand):
    help = "Ensure an E2E seller account exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--email", default="e2e_seller@example.com")
        parser.add_argument("--password", default="e2e_seller_pass")
        parser.add_argument("--phone", default="+252610000000")

    def handle(self, *args, **options):
        email = str(options.get("email") or "e2e_seller@example.com").strip().lower()
        password = str(options.get("password") or "e2e_seller_pass")
        phone = str(options.get("phone") or "")

        User = get_user_model()
        with transaction.atomic():
            user, created = User.objects.get_or_create(username=email, defaults={"email": email})

            # Always reset the password to keep CI/local runs predictable.
            user.set_password(password)
            user.save()

            Profile.objects.update_or_create(
                user=user,
                defaults={"name": "E2E Seller", "email": email, "phone": phone, "location": LOCATIONS[0]},
            )
            for role in (Role.SELLER, Role.BUYER):
                UserRole.objects.get_or_create(user=user, role=role)

        self.stdout.write(self.style.SUCCESS(f"E2E seller ready: email={email} (created={created})"))
