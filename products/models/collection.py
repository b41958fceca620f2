# products/models/collection.py

import uuid

from django.db import models


class Collection(models.Model):
    """
    Curated product grouping (e.g. "New Arrivals", "Festive Edit").
    Purely a browsing aid; carries no pricing rules.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120)
    slug = models.SlugField(max_length=140, unique=True)
    description = models.TextField(blank=True)

    products = models.ManyToManyField(
        "products.Product",
        blank=True,
        related_name="collections",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
