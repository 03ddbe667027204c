from django.contrib import admin
from django import forms
from django.db import transaction
from .models import User, Role, UserRoles, Faculty, Division, DivisionMembership


class UserRoleInline(admin.TabularInline):
    """Inline for managing user roles with auditing."""
    model = UserRoles
    extra = 0
    fields = ['role', 'is_active', 'assigned_at', 'disabled_at']
    readonly_fields = ['assigned_at', 'disabled_at']

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('role').order_by('-assigned_at')


class DivisionMembershipInline(admin.TabularInline):
    model = DivisionMembership
    extra = 0
    fields = ['division', 'role']


class UserAdminForm(forms.ModelForm):
    """Custom form for User admin with role selection."""
    role = forms.ModelChoiceField(
        queryset=Role.objects.all().order_by('role_name'),
        required=False,
        help_text="Select the active role for this user. Role changes are audited.",
        empty_label="-- Keep current role --"
    )

    class Meta:
        model = User
        fields = '__all__'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk:
            current_role = self.instance.get_active_role()
            if current_role:
                self.fields['role'].initial = current_role


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    form = UserAdminForm
    inlines = [UserRoleInline, DivisionMembershipInline]
    list_display = ['username', 'first_name', 'last_name', 'kind', 'faculty', 'is_active', 'get_roles']
    list_filter = ['kind', 'faculty', 'is_active', 'is_staff']
    search_fields = ['username', 'email', 'code', 'first_name', 'last_name']
    ordering = ['username']
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Authentication', {'fields': ('username', 'password')}),
        ('Personal Information', {'fields': ('first_name', 'last_name', 'email', 'kind', 'code', 'faculty')}),
        ('Role Assignment', {'fields': ('role',)}),
        ('Permissions', {'fields': ('is_active', 'is_staff')}),
        ('Important Dates', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    @admin.display(description='Active Roles')
    def get_roles(self, obj):
        names = [ur.role.role_name for ur in obj.userroles_set.filter(is_active=True).select_related('role')]
        return ', '.join(names) if names else 'No roles assigned'

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        selected_role = form.cleaned_data.get('role')
        if selected_role and selected_role != obj.get_active_role():
            with transaction.atomic():
                obj.assign_role(selected_role.role_name)
            self.message_user(request, f"User {obj.username} assigned role: {selected_role.role_name}")


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['role_name', 'description', 'get_users_count', 'created_at']
    search_fields = ['role_name', 'description']
    readonly_fields = ['created_at', 'updated_at']
    ordering = ['role_name']

    @admin.display(description='Users')
    def get_users_count(self, obj):
        return obj.userroles_set.filter(is_active=True).count()


class DivisionInline(admin.TabularInline):
    model = Division
    extra = 0


@admin.register(Faculty)
class FacultyAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'created_at']
    search_fields = ['code', 'name']
    inlines = [DivisionInline]


@admin.register(Division)
class DivisionAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'faculty']
    list_filter = ['faculty']
    search_fields = ['code', 'name']


@admin.register(DivisionMembership)
class DivisionMembershipAdmin(admin.ModelAdmin):
    list_display = ['user', 'division', 'role']
    list_filter = ['role', 'division__faculty']
    search_fields = ['user__username', 'division__code']
