from __future__ import annotations

import io
import random
from dataclasses import dataclass

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from market.catalog import CATEGORIES, DEFAULT_PRICE, LOCATIONS
from market.models import Product, ProductStatus, Profile, Role, UserRole
from market.uploads import storage_key

User = get_user_model()


@dataclass
class SeedCounts:
    created: dict[str, int]
    skipped: dict[str, int]

    def inc(self, bucket: str, key: str, n: int = 1) -> None:
        target = getattr(self, bucket)
        target[key] = int(target.get(key, 0)) + int(n)


QUANTITIES = {
    "crops": ["50 kg", "100 kg", "250 kg", "1 ton", "20 sacks"],
    "livestock": ["1 head", "2 heads", "5 heads", "10 heads"],
}

PRICES = ["$40", "$120", "$300", "$650", "$1,200", DEFAULT_PRICE]

SELLING_LINES = [
    "Fresh from this season's harvest.",
    "Healthy and vaccinated.",
    "Delivery available within the region.",
    "Call or message on WhatsApp.",
    "Bulk orders welcome.",
]


def _render_seed_image(*, text: str, seed: int, width: int = 800, height: int = 600) -> bytes:
    from PIL import Image, ImageDraw

    rnd = random.Random(seed)

    bg = (rnd.randint(40, 90), rnd.randint(90, 140), rnd.randint(30, 70))
    accent = (rnd.randint(200, 240), rnd.randint(170, 220), rnd.randint(60, 120))

    img = Image.new("RGB", (width, height), bg)
    draw = ImageDraw.Draw(img)

    pad = 30
    draw.rounded_rectangle([pad, pad, width - pad, height - pad], radius=30, outline=accent, width=6)

    y = height - 120
    for line in [ln.strip() for ln in text.split("\n") if ln.strip()][:3] or ["DalagHub"]:
        draw.text((pad + 20, y), line, fill=(245, 245, 245))
        y += 26

    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def _ensure_seller(index: int, rnd: random.Random, counts: SeedCounts):
    email = f"seed_seller_{index}@example.com"
    user, created = User.objects.get_or_create(username=email, defaults={"email": email})
    if created:
        user.set_unusable_password()
        user.save(update_fields=["password"])
    counts.inc("created" if created else "skipped", "users")

    _, created = Profile.objects.get_or_create(
        user=user,
        defaults={
            "name": f"Seed Seller {index}",
            "email": email,
            "phone": f"+25261{rnd.randint(1_000_000, 9_999_999)}",
            "location": rnd.choice(LOCATIONS),
        },
    )
    counts.inc("created" if created else "skipped", "profiles")

    for role in (Role.SELLER, Role.BUYER):
        UserRole.objects.get_or_create(user=user, role=role)
    return user


class Command(BaseCommand):
    help = "Seed demo sellers and listings across every category and product type."

    def add_arguments(self, parser):
        parser.add_argument("--per-subcategory", type=int, default=3, help="Listings per product type (default: 3)")
        parser.add_argument("--sellers", type=int, default=3, help="Number of seed sellers to create/use")
        parser.add_argument("--seed", type=int, default=1337, help="RNG seed")
        parser.add_argument("--images-per-listing", type=int, default=1, help="Images per listing (default: 1)")
        parser.add_argument("--no-images", action="store_true", help="Do not attach images")
        parser.add_argument(
            "--sold-ratio",
            type=float,
            default=0.1,
            help="Fraction of seeded listings marked sold (default: 0.1)",
        )

    def handle(self, *args, **options):
        if not getattr(settings, "SEEDING_ENABLED", False):
            raise CommandError("Seeding is disabled. Set SEEDING_ENABLED=true (or run with DEBUG=true).")

        per_subcategory = max(0, int(options.get("per_subcategory") or 0))
        sellers = max(1, int(options.get("sellers") or 1))
        seed = int(options.get("seed") or 1337)
        images_per_listing = 0 if options.get("no_images") else max(0, int(options.get("images_per_listing") or 0))
        sold_ratio = min(1.0, max(0.0, float(options.get("sold_ratio") or 0.0)))

        rnd = random.Random(seed)
        counts = SeedCounts(created={}, skipped={})

        with transaction.atomic():
            seller_users = [_ensure_seller(i, rnd, counts) for i in range(1, sellers + 1)]

            n = 0
            for category, info in CATEGORIES.items():
                for subcategory in info["subcategories"]:
                    for i in range(1, per_subcategory + 1):
                        seller = seller_users[n % len(seller_users)]
                        n += 1

                        title = f"{subcategory} #{i:02d}"
                        if Product.objects.filter(seller=seller, title=title).exists():
                            counts.inc("skipped", "products")
                            continue

                        images: list[str] = []
                        for img_i in range(images_per_listing):
                            png = _render_seed_image(text=f"{info['label']}\n{title}", seed=seed + n * 31 + img_i)
                            key = storage_key(seller.id, "seed.png", now_us=seed * 1_000_000 + n * 10 + img_i)
                            saved = default_storage.save(
                                f"{settings.PRODUCT_IMAGES_BUCKET}/{key}",
                                ContentFile(png),
                            )
                            images.append(default_storage.url(saved))
                            counts.inc("created", "images")

                        Product.objects.create(
                            seller=seller,
                            title=title,
                            category=category,
                            subcategory=subcategory,
                            quantity=rnd.choice(QUANTITIES[category]),
                            price=rnd.choice(PRICES),
                            description=" ".join(["Seeded listing for testing.", rnd.choice(SELLING_LINES)]),
                            images=images,
                            location=rnd.choice(LOCATIONS),
                            status=ProductStatus.SOLD if rnd.random() < sold_ratio else ProductStatus.ACTIVE,
                        )
                        counts.inc("created", "products")

        self.stdout.write(self.style.SUCCESS("Listing seeding complete"))
        self.stdout.write(str({"created": counts.created, "skipped": counts.skipped}))
