"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = postgresql.ENUM('ADMIN', 'FRANCHISE', 'DOCTOR', name='userrole', create_type=False)
payment_mode = postgresql.ENUM('CASH', 'UPI', 'CHEQUE', name='paymentmode', create_type=False)
gender = postgresql.ENUM('MALE', 'FEMALE', 'OTHER', name='gender', create_type=False)
appointment_type = postgresql.ENUM('CONSULTATION', 'PROCEDURE', name='appointmenttype', create_type=False)
transport_status = postgresql.ENUM('PENDING', 'DISPATCHED', 'DELIVERED', name='transportstatus', create_type=False)
stock_transaction_type = postgresql.ENUM(
    'SALE_TO_FRANCHISE', 'RECALL_FROM_FRANCHISE', 'FRANCHISE_TO_PATIENT_SALE', name='stocktransactiontype',
    create_type=False,
)
ALL_ENUMS = (user_role, payment_mode, gender, appointment_type, transport_status, stock_transaction_type)


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)
        )
    return columns


def _payment_columns() -> list:
    return [
        sa.Column('payment_mode', payment_mode, nullable=False),
        sa.Column('payer_name', sa.String(), nullable=True),
        sa.Column('contact_number', sa.String(), nullable=True),
        sa.Column('utr_number', sa.String(), nullable=True),
        sa.Column('cheque_date', sa.Date(), nullable=True),
        sa.Column('cheque_number', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
    ]


def upgrade() -> None:
    # Types ENUM créés une seule fois, partagés par plusieurs tables
    bind = op.get_bind()
    for enum_type in ALL_ENUMS:
        enum_type.create(bind, checkfirst=True)

    # Utilisateurs et référentiels
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'states',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        *_timestamps(updated=False),
    )
    op.create_table(
        'cities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('state_id', sa.Integer(), sa.ForeignKey('states.id'), nullable=False, index=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint('state_id', 'name', name='uq_city_state'),
    )

    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        'medicines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('brand_id', sa.Integer(), sa.ForeignKey('brands.id'), nullable=True),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('mrp', sa.Float(), nullable=False),
        sa.Column('base_rate', sa.Float(), nullable=True),
        sa.Column('gst_percent', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_medicines_name', 'medicines', ['name'], unique=True)
    op.create_table(
        'services',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('base_rate', sa.Float(), nullable=True),
        sa.Column('gst_percent', sa.Float(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_procedure', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_services_name', 'services', ['name'], unique=True)
    op.create_table(
        'labs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        'packages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('discount_percent', sa.Float(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_packages_name', 'packages', ['name'], unique=True)
    op.create_table(
        'package_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('package_id', sa.Integer(), sa.ForeignKey('packages.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
    )
    op.create_table(
        'package_medicines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('package_id', sa.Integer(), sa.ForeignKey('packages.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
    )

    # Franchises et équipes
    op.create_table(
        'franchises',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address_line1', sa.String(), nullable=True),
        sa.Column('address_line2', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=False),
        sa.Column('pincode', sa.String(), nullable=False),
        sa.Column('contact_no', sa.String(), nullable=False),
        sa.Column('contact_email', sa.String(), nullable=False),
        sa.Column('user_mobile', sa.String(), nullable=False),
        sa.Column('franchise_fee_amount', sa.Float(), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_index('ix_franchises_name', 'franchises', ['name'], unique=True)
    op.create_table(
        'franchise_fee_payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('payment_date', sa.Date(), nullable=False),
        *_payment_columns(),
        *_timestamps(updated=False),
    )
    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('joining_date', sa.Date(), nullable=True),
        sa.Column('leaving_date', sa.Date(), nullable=True),
        sa.Column('address_line1', sa.String(), nullable=True),
        sa.Column('address_line2', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=True),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('pincode', sa.String(), nullable=True),
        sa.Column('user_mobile', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('franchise_id', 'name', name='uq_room_franchise'),
    )

    # Patients
    op.create_table(
        'patient_sequences',
        sa.Column('date_key', sa.String(8), primary_key=True),
        sa.Column('last_number', sa.Integer(), nullable=False),
    )
    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_no', sa.String(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True),
        sa.Column('lab_id', sa.Integer(), sa.ForeignKey('labs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('middle_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('gender', gender, nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('state_id', sa.Integer(), sa.ForeignKey('states.id'), nullable=True),
        sa.Column('city_id', sa.Integer(), sa.ForeignKey('cities.id'), nullable=True),
        sa.Column('pincode', sa.String(), nullable=True),
        sa.Column('mobile', sa.String(), nullable=False, index=True),
        sa.Column('mobile2', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('blood_group', sa.String(), nullable=True),
        sa.Column('height', sa.Float(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('bmi', sa.Float(), nullable=True),
        sa.Column('marital_status', sa.String(), nullable=True),
        sa.Column('occupation', sa.String(), nullable=True),
        sa.Column('aadhar_no', sa.String(), nullable=True),
        sa.Column('referred_by', sa.String(), nullable=True),
        sa.Column('is_referred_to_ho', sa.Boolean(), nullable=False),
        sa.Column('contact_person_name', sa.String(), nullable=True),
        sa.Column('contact_person_relation', sa.String(), nullable=True),
        sa.Column('contact_person_mobile', sa.String(), nullable=True),
        sa.Column('medical_insurance', sa.Boolean(), nullable=False),
        sa.Column('primary_insurance_name', sa.String(), nullable=True),
        sa.Column('primary_insurance_holder_name', sa.String(), nullable=True),
        sa.Column('primary_insurance_id', sa.String(), nullable=True),
        sa.Column('secondary_insurance_name', sa.String(), nullable=True),
        sa.Column('secondary_insurance_holder_name', sa.String(), nullable=True),
        sa.Column('secondary_insurance_id', sa.String(), nullable=True),
        sa.Column('balance_amount', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_patients_patient_no', 'patients', ['patient_no'], unique=True)
    op.create_table(
        'patient_medical_histories',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('medical_history', sa.JSON(), nullable=True),
        sa.Column('surgical_history', sa.JSON(), nullable=True),
        sa.Column('family_history', sa.JSON(), nullable=True),
        sa.Column('allergies', sa.JSON(), nullable=True),
        sa.Column('current_medications', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'patient_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('url', sa.String(), nullable=False),
        *_timestamps(updated=False),
    )

    # Rendez-vous et consultations
    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id'), nullable=False, index=True),
        sa.Column('appointment_date_time', sa.DateTime(), nullable=False, index=True),
        sa.Column('visit_purpose', sa.String(), nullable=True),
        sa.Column('type', appointment_type, nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'consultations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('appointment_id', sa.Integer(), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('complaint', sa.Text(), nullable=True),
        sa.Column('diagnosis', sa.Text(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('case_paper_url', sa.String(), nullable=True),
        sa.Column('next_follow_up_date', sa.Date(), nullable=True),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('total_received_amount', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'consultation_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('consultation_id', sa.Integer(), sa.ForeignKey('consultations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('service_id', sa.Integer(), sa.ForeignKey('services.id'), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
    )
    op.create_table(
        'consultation_medicines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('consultation_id', sa.Integer(), sa.ForeignKey('consultations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=True),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('mrp', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('doses', sa.String(), nullable=True),
    )
    op.create_table(
        'consultation_receipts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('receipt_number', sa.String(), nullable=False),
        sa.Column('consultation_id', sa.Integer(), sa.ForeignKey('consultations.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False),
        *_payment_columns(),
        *_timestamps(updated=False),
    )
    op.create_index('ix_consultation_receipts_receipt_number', 'consultation_receipts', ['receipt_number'], unique=True)

    # Factures médicaments
    op.create_table(
        'medicine_bills',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bill_number', sa.String(), nullable=False),
        sa.Column('bill_date', sa.DateTime(), nullable=False, index=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('discount_percent', sa.Float(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('total_received_amount', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_medicine_bills_bill_number', 'medicine_bills', ['bill_number'], unique=True)
    op.create_table(
        'medicine_bill_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('medicine_bill_id', sa.Integer(), sa.ForeignKey('medicine_bills.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False),
        sa.Column('qty', sa.Integer(), nullable=False),
        sa.Column('mrp', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
    )
    op.create_table(
        'medicine_bill_receipts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('receipt_number', sa.String(), nullable=False),
        sa.Column('medicine_bill_id', sa.Integer(), sa.ForeignKey('medicine_bills.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False),
        *_payment_columns(),
        *_timestamps(updated=False),
    )
    op.create_index('ix_medicine_bill_receipts_receipt_number', 'medicine_bill_receipts', ['receipt_number'], unique=True)

    # Ventes et transports
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('invoice_no', sa.String(), nullable=False),
        sa.Column('invoice_date', sa.DateTime(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('discount_percent', sa.Float(), nullable=False),
        sa.Column('total_amount', sa.Float(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_sales_invoice_no', 'sales', ['invoice_no'], unique=True)
    op.create_table(
        'sale_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
    )
    op.create_table(
        'transports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', transport_status, nullable=False, index=True),
        sa.Column('dispatched_quantity', sa.Integer(), nullable=True),
        sa.Column('transporter_name', sa.String(), nullable=True),
        sa.Column('company_name', sa.String(), nullable=True),
        sa.Column('transport_fee', sa.Float(), nullable=True),
        sa.Column('receipt_number', sa.String(), nullable=True),
        sa.Column('vehicle_number', sa.String(), nullable=True),
        sa.Column('tracking_number', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('dispatched_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('stock_posted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'transport_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transport_id', sa.Integer(), sa.ForeignKey('transports.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sale_detail_id', sa.Integer(), sa.ForeignKey('sale_details.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.UniqueConstraint('transport_id', 'sale_detail_id', name='uq_transport_sale_detail'),
    )

    # Stock
    op.create_table(
        'stock_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('txn_type', stock_transaction_type, nullable=False),
        sa.Column('txn_no', sa.String(), nullable=False),
        sa.Column('txn_date', sa.DateTime(), nullable=False),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_by_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sale_id', sa.Integer(), sa.ForeignKey('sales.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('medicine_bill_id', sa.Integer(), sa.ForeignKey('medicine_bills.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_stock_transactions_txn_no', 'stock_transactions', ['txn_no'], unique=True)
    op.create_table(
        'stock_ledger',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('stock_transactions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False, index=True),
        sa.Column('batch_number', sa.String(), nullable=True),
        sa.Column('expiry_date', sa.Date(), nullable=True),
        sa.Column('qty_change', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        *_timestamps(updated=False),
    )
    op.create_table(
        'stock_balances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False, index=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('franchise_id', 'medicine_id', name='uq_stock_balance'),
    )
    op.create_table(
        'stock_batch_balances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False, index=True),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('franchise_id', 'medicine_id', 'batch_number', 'expiry_date', name='uq_stock_batch_balance'),
    )
    op.create_table(
        'admin_stock_balances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False, unique=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_table(
        'admin_stock_batch_balances',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False, index=True),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.UniqueConstraint('medicine_id', 'batch_number', 'expiry_date', name='uq_admin_stock_batch_balance'),
    )
    op.create_table(
        'stock_recalls',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('stock_transaction_id', sa.Integer(), sa.ForeignKey('stock_transactions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('franchise_id', sa.Integer(), sa.ForeignKey('franchises.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('medicine_id', sa.Integer(), sa.ForeignKey('medicines.id'), nullable=False),
        sa.Column('batch_number', sa.String(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_by_user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('recalled_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )


def downgrade() -> None:
    for table in (
        'stock_recalls',
        'admin_stock_batch_balances',
        'admin_stock_balances',
        'stock_batch_balances',
        'stock_balances',
        'stock_ledger',
        'stock_transactions',
        'transport_details',
        'transports',
        'sale_details',
        'sales',
        'medicine_bill_receipts',
        'medicine_bill_details',
        'medicine_bills',
        'consultation_receipts',
        'consultation_medicines',
        'consultation_details',
        'consultations',
        'appointments',
        'patient_reports',
        'patient_medical_histories',
        'patients',
        'patient_sequences',
        'rooms',
        'teams',
        'franchise_fee_payments',
        'franchises',
        'package_medicines',
        'package_details',
        'packages',
        'labs',
        'services',
        'medicines',
        'brands',
        'cities',
        'states',
        'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(bind, checkfirst=True)
