# app/model_registry/__init__.py


# Register all models here

# User models
from app.users.user_models.user_model import User
from app.users.auth_token_model.token_model import Token
from app.users.password_reset_token.password_reset_token_model import PasswordResetToken

# Front desk and queue
from app.system_models.appointment_model.appointment_model import Appointment
from app.system_models.token_counter_model.token_counter_model import TokenCounter

# Pharmacy
from app.system_models.medicine_model.medicine_model import Medicine
from app.system_models.prescription_model.prescription_model import Prescription, PrescriptionMedicine

# Billing
from app.system_models.invoice_model.invoice_model import Invoice, InvoiceItem
from app.system_models.payment_model.payment_model import Payment
