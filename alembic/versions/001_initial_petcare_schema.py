"""Initial petcare schema

Revision ID: 001
Revises:
Create Date: 2025-06-01 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

ENUM_TYPES = (
    'user_role',
    'identification_type',
    'pet_gender',
    'service_segment',
    'appointment_status',
    'room_type',
    'hotel_stay_status',
    'pqr_type',
    'pqr_status',
)


def audit_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('updated_by', sa.Uuid(), nullable=True),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table('users',
        *audit_columns(),
        sa.Column('name', sa.String(length=255), nullable=False, comment='Full name'),
        sa.Column('email', sa.String(length=255), nullable=False, comment='Login email address'),
        sa.Column('phone', sa.String(length=20), nullable=True, comment='Contact phone number'),
        sa.Column('position', sa.String(length=100), nullable=True, comment='Job title shown to other staff'),
        sa.Column('role', sa.Enum('general_manager', 'hotel_employee', 'clinic_admin', 'spa_assistant', 'public', name='user_role'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email')
    )
    op.create_index('idx_users_role_active', 'users', ['role', 'is_active'])

    # Create clients table
    op.create_table('clients',
        *audit_columns(),
        sa.Column('name', sa.String(length=255), nullable=False, comment='Client full name'),
        sa.Column('email', sa.String(length=255), nullable=False, comment='Contact email, unique per client'),
        sa.Column('phone', sa.String(length=20), nullable=False, comment='Contact phone number'),
        sa.Column('address', sa.Text(), nullable=False, comment='Postal address'),
        sa.Column('identification_type', sa.Enum('CC', 'CE', 'NIT', 'PP', name='identification_type'), nullable=False),
        sa.Column('identification_number', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_clients'),
        sa.UniqueConstraint('email', name='uq_clients_email'),
        sa.UniqueConstraint('identification_number', name='uq_clients_identification_number')
    )

    # Create pets table
    op.create_table('pets',
        *audit_columns(),
        sa.Column('client_id', sa.Uuid(), nullable=False, comment='Owner of the pet'),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('species', sa.String(length=50), nullable=False),
        sa.Column('breed', sa.String(length=100), nullable=False),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('gender', sa.Enum('male', 'female', name='pet_gender'), nullable=False),
        sa.Column('weight', sa.Numeric(precision=8, scale=2), nullable=True, comment='Weight in kilograms'),
        sa.Column('medical_observations', sa.Text(), nullable=True),
        sa.Column('photo', sa.String(length=500), nullable=True, comment='Storage key of the pet photo'),
        sa.CheckConstraint('weight IS NULL OR (weight >= 0 AND weight <= 999.99)', name='ck_pets_weight_range'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], name='fk_pets_client_id_clients', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_pets')
    )
    op.create_index('ix_pets_client_id', 'pets', ['client_id'])
    op.create_index('idx_pets_species', 'pets', ['species'])
    op.create_index('idx_pets_name', 'pets', ['name'])

    # Create service catalog tables
    op.create_table('service_categories',
        *audit_columns(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('segment', sa.Enum('clinic', 'hotel', 'spa', name='service_segment'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_service_categories')
    )
    op.create_index('ix_service_categories_segment', 'service_categories', ['segment'])

    op.create_table('services',
        *audit_columns(),
        sa.Column('service_category_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False, comment='List price'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_services_price_non_negative'),
        sa.ForeignKeyConstraint(['service_category_id'], ['service_categories.id'], name='fk_services_service_category_id_service_categories', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_services')
    )
    op.create_index('ix_services_service_category_id', 'services', ['service_category_id'])
    op.create_index('idx_services_active_name', 'services', ['is_active', 'name'])

    # Create appointments table
    op.create_table('appointments',
        *audit_columns(),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('pet_id', sa.Uuid(), nullable=False),
        sa.Column('service_id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='Staff member assigned to the appointment'),
        sa.Column('appointment_date', sa.DateTime(timezone=True), nullable=False, comment='Scheduled date and time (UTC)'),
        sa.Column('status', sa.Enum('scheduled', 'in_progress', 'completed', 'cancelled', name='appointment_status'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('final_price', sa.Numeric(precision=10, scale=2), nullable=True, comment='Amount charged'),
        sa.CheckConstraint('final_price IS NULL OR final_price >= 0', name='ck_appointments_final_price_non_negative'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], name='fk_appointments_client_id_clients', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id'], name='fk_appointments_pet_id_pets', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id'], name='fk_appointments_service_id_services', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_appointments_user_id_users', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_appointments')
    )
    op.create_index('ix_appointments_client_id', 'appointments', ['client_id'])
    op.create_index('ix_appointments_pet_id', 'appointments', ['pet_id'])
    op.create_index('ix_appointments_service_id', 'appointments', ['service_id'])
    op.create_index('ix_appointments_user_id', 'appointments', ['user_id'])
    op.create_index('idx_appointments_status_date', 'appointments', ['status', 'appointment_date'])
    op.create_index('idx_appointments_date', 'appointments', ['appointment_date'])

    # Create hotel_stays table
    op.create_table('hotel_stays',
        *audit_columns(),
        sa.Column('pet_id', sa.Uuid(), nullable=False),
        sa.Column('client_id', sa.Uuid(), nullable=False),
        sa.Column('check_in_date', sa.Date(), nullable=False),
        sa.Column('check_out_date', sa.Date(), nullable=False),
        sa.Column('room_type', sa.Enum('standard', 'premium', 'deluxe', name='room_type'), nullable=False),
        sa.Column('special_requirements', sa.Text(), nullable=True),
        sa.Column('daily_rate', sa.Numeric(precision=8, scale=2), nullable=False),
        sa.Column('total_cost', sa.Numeric(precision=10, scale=2), nullable=False, comment='daily_rate times whole days of the stay'),
        sa.Column('status', sa.Enum('reserved', 'active', 'completed', 'cancelled', name='hotel_stay_status'), nullable=False),
        sa.CheckConstraint('check_out_date > check_in_date', name='ck_hotel_stays_check_out_after_check_in'),
        sa.CheckConstraint('daily_rate >= 0', name='ck_hotel_stays_daily_rate_non_negative'),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id'], name='fk_hotel_stays_pet_id_pets', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id'], name='fk_hotel_stays_client_id_clients', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_hotel_stays')
    )
    op.create_index('ix_hotel_stays_pet_id', 'hotel_stays', ['pet_id'])
    op.create_index('ix_hotel_stays_client_id', 'hotel_stays', ['client_id'])
    op.create_index('idx_hotel_stays_status', 'hotel_stays', ['status'])
    op.create_index('idx_hotel_stays_dates', 'hotel_stays', ['check_in_date', 'check_out_date'])

    # Create clinical tables
    op.create_table('medical_records',
        *audit_columns(),
        sa.Column('pet_id', sa.Uuid(), nullable=False),
        sa.Column('appointment_id', sa.Uuid(), nullable=True, comment='Appointment the record was written for, if any'),
        sa.Column('veterinarian_id', sa.Uuid(), nullable=False, comment='User with a clinical role who wrote the record'),
        sa.Column('diagnosis', sa.Text(), nullable=False),
        sa.Column('treatment', sa.Text(), nullable=False),
        sa.Column('medications', sa.Text(), nullable=True),
        sa.Column('observations', sa.Text(), nullable=True),
        sa.Column('next_visit', sa.Date(), nullable=True),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id'], name='fk_medical_records_pet_id_pets', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['appointment_id'], ['appointments.id'], name='fk_medical_records_appointment_id_appointments', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['veterinarian_id'], ['users.id'], name='fk_medical_records_veterinarian_id_users', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_medical_records')
    )
    op.create_index('ix_medical_records_pet_id', 'medical_records', ['pet_id'])
    op.create_index('ix_medical_records_appointment_id', 'medical_records', ['appointment_id'])
    op.create_index('ix_medical_records_veterinarian_id', 'medical_records', ['veterinarian_id'])
    op.create_index('idx_medical_records_pet_created', 'medical_records', ['pet_id', 'created_at'])

    op.create_table('vaccinations',
        *audit_columns(),
        sa.Column('pet_id', sa.Uuid(), nullable=False),
        sa.Column('vaccine_name', sa.String(length=255), nullable=False),
        sa.Column('application_date', sa.Date(), nullable=False),
        sa.Column('next_dose_date', sa.Date(), nullable=True),
        sa.Column('observations', sa.Text(), nullable=True),
        sa.CheckConstraint('next_dose_date IS NULL OR next_dose_date > application_date', name='ck_vaccinations_next_dose_after_application'),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id'], name='fk_vaccinations_pet_id_pets', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_vaccinations')
    )
    op.create_index('ix_vaccinations_pet_id', 'vaccinations', ['pet_id'])
    op.create_index('idx_vaccinations_next_dose', 'vaccinations', ['next_dose_date'])

    # Create pqrs table
    op.create_table('pqrs',
        *audit_columns(),
        sa.Column('client_name', sa.String(length=255), nullable=False),
        sa.Column('client_email', sa.String(length=255), nullable=False),
        sa.Column('client_phone', sa.String(length=20), nullable=True),
        sa.Column('type', sa.Enum('peticion', 'queja', 'reclamo', 'sugerencia', name='pqr_type'), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('pending', 'in_process', 'resolved', 'closed', name='pqr_status'), nullable=False),
        sa.Column('response', sa.Text(), nullable=True),
        sa.Column('assigned_to', sa.Uuid(), nullable=True, comment='Staff member handling the PQR'),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], name='fk_pqrs_assigned_to_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_pqrs')
    )
    op.create_index('ix_pqrs_assigned_to', 'pqrs', ['assigned_to'])
    op.create_index('idx_pqrs_status_created', 'pqrs', ['status', 'created_at'])
    op.create_index('idx_pqrs_type', 'pqrs', ['type'])


def downgrade() -> None:
    # Drop tables in reverse dependency order
    op.drop_table('pqrs')
    op.drop_table('vaccinations')
    op.drop_table('medical_records')
    op.drop_table('hotel_stays')
    op.drop_table('appointments')
    op.drop_table('services')
    op.drop_table('service_categories')
    op.drop_table('pets')
    op.drop_table('clients')
    op.drop_table('users')

    # Drop enum types (no-op on backends without named enums)
    bind = op.get_bind()
    for name in ENUM_TYPES:
        sa.Enum(name=name).drop(bind, checkfirst=True)
