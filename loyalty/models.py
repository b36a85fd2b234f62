import uuid
from django.db import models
from django.db.models import F, Q

from .tiers import compute_tier_progress


BENEFIT_KIND_CHOICES = [
    ('oralProphylaxis', 'Oral Prophylaxis'),
    ('toothExtraction', 'Tooth Extraction'),
    ('lightCureFilling', 'Light Cure Filling'),
    ('fluorideTreatment', 'Fluoride Treatment'),
]
BENEFIT_KINDS = [kind for kind, _ in BENEFIT_KIND_CHOICES]

SERVICE_CATEGORY_CHOICES = [
    ('preventive', 'Preventive Care'),
    ('restorative', 'Restorative'),
    ('cosmetic', 'Cosmetic'),
    ('surgical', 'Surgical'),
    ('orthodontic', 'Orthodontic'),
    ('emergency', 'Emergency'),
]

# 福利 → 服务分类，兑换完成时写入 Service 历史
BENEFIT_CATEGORIES = {
    'oralProphylaxis': 'preventive',
    'toothExtraction': 'restorative',
    'lightCureFilling': 'restorative',
    'fluorideTreatment': 'preventive',
}


class ClientRecord(models.Model):
    """注册前名单（roster）。has_registered 只会从 False 变成 True 一次。"""

    order_number = models.CharField(max_length=20)
    billing_name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    billing_phone = models.CharField(max_length=30, blank=True)
    created_label = models.CharField(max_length=50, blank=True)
    has_registered = models.BooleanField(default=False)
    password = models.CharField(max_length=128, blank=True)
    registered_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'client_records'
        ordering = ['id']


class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.OneToOneField(
        ClientRecord, on_delete=models.SET_NULL, blank=True, null=True, related_name='patient',
    )
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    emergency_contact = models.CharField(max_length=200, blank=True)
    emergency_phone = models.CharField(max_length=30, blank=True)
    # 名单里多条记录可以共用同一订单号，会员号沿用订单号，因此不唯一
    membership_id = models.CharField(max_length=20, db_index=True)
    loyalty_points = models.PositiveIntegerField(default=0)
    date_of_birth = models.DateField(blank=True, null=True)
    dentist_id = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)
    member_since = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'

    @property
    def tier_progress(self):
        return compute_tier_progress(self.loyalty_points)

    @property
    def membership_tier(self):
        # 派生字段，不能单独设置
        return self.tier_progress.current_tier.name

    @property
    def points_to_next_tier(self):
        return self.tier_progress.points_to_next


class BenefitStatus(models.Model):
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='dental_benefits')
    kind = models.CharField(max_length=30, choices=BENEFIT_KIND_CHOICES)
    total = models.PositiveIntegerField(default=0)
    remaining = models.PositiveIntegerField(default=0)
    last_used = models.DateField(blank=True, null=True)
    expiry_date = models.DateField(blank=True, null=True)

    class Meta:
        db_table = 'benefit_statuses'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(fields=['patient', 'kind'], name='unique_benefit_per_patient'),
            models.CheckConstraint(condition=Q(remaining__lte=F('total')), name='remaining_within_total'),
        ]

    @property
    def used(self):
        return self.remaining < self.total


class Service(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='services')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=SERVICE_CATEGORY_CHOICES)
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    points_earned = models.PositiveIntegerField(default=0)
    completed = models.BooleanField(default=False)
    date = models.DateField(blank=True, null=True)
    benefit_used = models.BooleanField(default=False)
    provider = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'services'
        ordering = ['-date', '-created_at']


class PendingRegistration(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30)
    date_of_birth = models.DateField()
    street = models.CharField(max_length=200)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    zip_code = models.CharField(max_length=20)
    country = models.CharField(max_length=100, default='Philippines')
    emergency_contact = models.CharField(max_length=200)
    emergency_phone = models.CharField(max_length=30)
    password = models.CharField(max_length=128)
    dentist_id = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    rejection_reason = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    decided_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'pending_registrations'


class Redemption(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='redemptions')
    dentist_id = models.CharField(max_length=50)
    service = models.ForeignKey(
        Service, on_delete=models.SET_NULL, blank=True, null=True, related_name='redemptions',
    )
    service_name = models.CharField(max_length=200)
    benefit_type = models.CharField(max_length=30, choices=BENEFIT_KIND_CHOICES)
    points_used = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    notes = models.TextField(blank=True)
    redemption_date = models.DateTimeField()
    completed_at = models.DateTimeField(blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'redemptions'
