"""Initial payroll schema - tenants, employees, payroll, transactions, advances, leave

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-06-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # =====================================================
    # TENANTS
    # =====================================================
    op.create_table(
        'tenants',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('registered_on', sa.Date(), nullable=False),
        sa.Column('settlement_account_number', sa.String(30), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_tenants'),
        sa.UniqueConstraint('email', name='uq_tenants_email'),
    )

    # =====================================================
    # EMPLOYEES
    # =====================================================
    op.create_table(
        'employees',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'tenant_id', sa.Uuid(),
            sa.ForeignKey('tenants.id', name='fk_employees_tenant_id_tenants', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('employee_number', sa.String(30), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('position', sa.String(150), nullable=False),
        sa.Column('department', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column(
            'employment_type',
            sa.Enum('PERMANENT', 'CONTRACT', 'PROBATION', 'ATTACHMENT', name='employmenttype'),
            nullable=False,
        ),
        sa.Column('employment_end_date', sa.Date(), nullable=True),
        sa.Column('probation_end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.Enum('ACTIVE', 'INACTIVE', name='employeestatus'), nullable=False),
        sa.Column('basic_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('housing_allowance', sa.Numeric(15, 2), nullable=False),
        sa.Column('transport_allowance', sa.Numeric(15, 2), nullable=False),
        sa.Column('medical_allowance', sa.Numeric(15, 2), nullable=False),
        sa.Column('other_allowance', sa.Numeric(15, 2), nullable=False),
        sa.Column('loan_deduction', sa.Numeric(15, 2), nullable=False),
        sa.Column('other_deduction', sa.Numeric(15, 2), nullable=False),
        sa.Column('bank_name', sa.String(100), nullable=True),
        sa.Column('account_name', sa.String(200), nullable=True),
        sa.Column('account_number', sa.String(30), nullable=True),
        sa.Column('branch_name', sa.String(100), nullable=True),
        sa.Column('swift_code', sa.String(20), nullable=True),
        sa.Column('bank_code', sa.String(20), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_employees'),
        sa.UniqueConstraint('tenant_id', 'employee_number', name='uq_employee_tenant_number'),
        sa.UniqueConstraint('tenant_id', 'email', name='uq_employee_tenant_email'),
        sa.CheckConstraint('basic_salary > 0', name='ck_employees_basic_salary_positive'),
        sa.CheckConstraint(
            'housing_allowance >= 0 AND transport_allowance >= 0 '
            'AND medical_allowance >= 0 AND other_allowance >= 0',
            name='ck_employees_allowances_non_negative',
        ),
        sa.CheckConstraint(
            'loan_deduction >= 0 AND other_deduction >= 0',
            name='ck_employees_deductions_non_negative',
        ),
    )
    op.create_index('ix_employees_tenant_id', 'employees', ['tenant_id'])
    op.create_index('ix_employees_status', 'employees', ['status'])

    # =====================================================
    # PAYROLL PERIODS & RECORDS
    # =====================================================
    op.create_table(
        'payroll_periods',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'tenant_id', sa.Uuid(),
            sa.ForeignKey('tenants.id', name='fk_payroll_periods_tenant_id_tenants', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('processed_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_count', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_payroll_periods'),
        sa.UniqueConstraint('tenant_id', 'month', 'year', name='uq_payroll_period_tenant_month_year'),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_payroll_periods_period_month_range'),
    )
    op.create_index('ix_payroll_periods_tenant_id', 'payroll_periods', ['tenant_id'])

    op.create_table(
        'payroll_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'tenant_id', sa.Uuid(),
            sa.ForeignKey('tenants.id', name='fk_payroll_records_tenant_id_tenants', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'employee_id', sa.Uuid(),
            sa.ForeignKey('employees.id', name='fk_payroll_records_employee_id_employees', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('basic_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('allowances', sa.Numeric(15, 2), nullable=False),
        sa.Column('gross_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('paye', sa.Numeric(15, 2), nullable=False),
        sa.Column('nhif', sa.Numeric(15, 2), nullable=False),
        sa.Column('nssf', sa.Numeric(15, 2), nullable=False),
        sa.Column('other_deductions', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_deductions', sa.Numeric(15, 2), nullable=False),
        sa.Column('net_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('processed_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'source',
            sa.Enum('PAYROLL_RUN', 'SINGLE_EMPLOYEE', name='payrollrecordsource'),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_payroll_records'),
        sa.UniqueConstraint(
            'tenant_id', 'employee_id', 'month', 'year',
            name='uq_payroll_record_tenant_employee_period',
        ),
        sa.CheckConstraint('month >= 1 AND month <= 12', name='ck_payroll_records_record_month_range'),
    )
    op.create_index('ix_payroll_records_tenant_id', 'payroll_records', ['tenant_id'])
    op.create_index('ix_payroll_records_employee_id', 'payroll_records', ['employee_id'])

    # =====================================================
    # SALARY ADVANCES
    # =====================================================
    op.create_table(
        'salary_advances',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'tenant_id', sa.Uuid(),
            sa.ForeignKey('tenants.id', name='fk_salary_advances_tenant_id_tenants', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('fee', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('request_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'APPROVED', 'REJECTED', 'DISBURSED', 'FAILED', name='advancestatus'),
            nullable=False,
        ),
        sa.Column('approved_by', sa.String(100), nullable=True),
        sa.Column('approval_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('transaction_reference', sa.Text(), nullable=True),
        sa.Column('disbursement_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('repayment_date', sa.Date(), nullable=False),
        sa.Column(
            'repayment_status',
            sa.Enum('PENDING', 'PARTIAL', 'COMPLETED', name='repaymentstatus'),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_salary_advances'),
    )
    op.create_index('ix_salary_advances_tenant_id', 'salary_advances', ['tenant_id'])
    op.create_index('ix_salary_advances_status', 'salary_advances', ['status'])

    op.create_table(
        'salary_advance_employees',
        sa.Column(
            'salary_advance_id', sa.Uuid(),
            sa.ForeignKey(
                'salary_advances.id',
                name='fk_salary_advance_employees_salary_advance_id_salary_advances',
                ondelete='CASCADE',
            ),
            nullable=False,
        ),
        sa.Column(
            'employee_id', sa.Uuid(),
            sa.ForeignKey(
                'employees.id',
                name='fk_salary_advance_employees_employee_id_employees',
                ondelete='CASCADE',
            ),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint('salary_advance_id', 'employee_id', name='pk_salary_advance_employees'),
    )

    # =====================================================
    # TRANSACTIONS
    # =====================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'tenant_id', sa.Uuid(),
            sa.ForeignKey('tenants.id', name='fk_transactions_tenant_id_tenants', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'payroll_record_id', sa.Uuid(),
            sa.ForeignKey(
                'payroll_records.id',
                name='fk_transactions_payroll_record_id_payroll_records',
                ondelete='SET NULL',
            ),
            nullable=True,
        ),
        sa.Column(
            'salary_advance_id', sa.Uuid(),
            sa.ForeignKey(
                'salary_advances.id',
                name='fk_transactions_salary_advance_id_salary_advances',
                ondelete='SET NULL',
            ),
            nullable=True,
        ),
        sa.Column(
            'employee_id', sa.Uuid(),
            sa.ForeignKey('employees.id', name='fk_transactions_employee_id_employees', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'COMPLETED', 'FAILED', name='transactionstatus'),
            nullable=False,
        ),
        sa.Column('source_account', sa.JSON(), nullable=False),
        sa.Column('destination_account', sa.JSON(), nullable=False),
        sa.Column('transaction_reference', sa.String(40), nullable=False),
        sa.Column('transaction_date', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
    )
    op.create_index('ix_transactions_tenant_id', 'transactions', ['tenant_id'])
    op.create_index('ix_transactions_payroll_record_id', 'transactions', ['payroll_record_id'])
    op.create_index('ix_transactions_salary_advance_id', 'transactions', ['salary_advance_id'])
    op.create_index('ix_transactions_employee_id', 'transactions', ['employee_id'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index(
        'ix_transactions_transaction_reference', 'transactions', ['transaction_reference'], unique=True,
    )

    # =====================================================
    # LEAVE REQUESTS
    # =====================================================
    op.create_table(
        'leave_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column(
            'tenant_id', sa.Uuid(),
            sa.ForeignKey('tenants.id', name='fk_leave_requests_tenant_id_tenants', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'employee_id', sa.Uuid(),
            sa.ForeignKey('employees.id', name='fk_leave_requests_employee_id_employees', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'leave_type',
            sa.Enum(
                'ANNUAL', 'SICK', 'MATERNITY', 'PATERNITY', 'STUDY', 'UNPAID', 'OTHER',
                name='leavetype',
            ),
            nullable=False,
        ),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='leavestatus'), nullable=False),
        sa.Column('approved_by', sa.String(100), nullable=True),
        sa.Column('approval_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_leave_requests'),
        sa.CheckConstraint('start_date <= end_date', name='ck_leave_requests_leave_date_range'),
    )
    op.create_index('ix_leave_requests_tenant_id', 'leave_requests', ['tenant_id'])
    op.create_index('ix_leave_requests_employee_id', 'leave_requests', ['employee_id'])
    op.create_index('ix_leave_requests_status', 'leave_requests', ['status'])


def downgrade() -> None:
    op.drop_table('leave_requests')
    op.drop_table('transactions')
    op.drop_table('salary_advance_employees')
    op.drop_table('salary_advances')
    op.drop_table('payroll_records')
    op.drop_table('payroll_periods')
    op.drop_table('employees')
    op.drop_table('tenants')

    for enum_name in (
        'leavestatus', 'leavetype', 'transactionstatus', 'repaymentstatus', 'advancestatus',
        'payrollrecordsource', 'employeestatus', 'employmenttype',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
