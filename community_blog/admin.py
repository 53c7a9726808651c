"""
Django admin configuration for community_blog.
"""
from django.contrib import admin

from .conf import blog_settings
from .models import Post, PostHashtag, PostStatus, Profile


class PostHashtagInline(admin.TabularInline):
    """Inline for managing hashtags on posts."""

    model = PostHashtag
    extra = 1
    fields = ["hashtag"]


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ["name", "user", "role", "is_admin", "created_at"]
    list_filter = ["is_admin"]
    search_fields = ["name", "user__email", "user__username"]
    raw_id_fields = ["user"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = [
        "title_preview",
        "author",
        "category",
        "status",
        "published",
        "reviewed_by",
        "created_at",
    ]
    list_filter = ["status", "published", "category", "created_at"]
    search_fields = ["title", "excerpt", "author__username", "hashtags__hashtag"]
    raw_id_fields = ["author", "reviewed_by"]
    date_hierarchy = "created_at"
    inlines = [PostHashtagInline]
    readonly_fields = ["created_at", "updated_at", "reviewed_at"]

    fieldsets = (
        (None, {
            "fields": ("title", "excerpt", "content", "cover_image", "author")
        }),
        ("Taxonomy", {
            "fields": ("category",)
        }),
        ("Moderation", {
            "fields": ("status", "published", "reviewed_by", "reviewed_at", "review_notes")
        }),
        ("Metadata", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    actions = ["approve_posts"]

    def title_preview(self, obj):
        """Truncated title for list display."""
        return obj.title[:60] + "..." if len(obj.title) > 60 else obj.title

    title_preview.short_description = "Title"

    @admin.action(description="Approve selected pending posts")
    def approve_posts(self, request, queryset):
        count = 0
        for post in queryset.filter(status=PostStatus.PENDING):
            post.review(request.user, PostStatus.APPROVED, blog_settings.DEFAULT_APPROVAL_NOTES)
            count += 1
        self.message_user(request, f"{count} posts approved.")
