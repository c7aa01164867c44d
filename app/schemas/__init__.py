from app.schemas.user import User, UserCreate, UserUpdate, UserLogin, PasswordChange, ProfileUpdate
from app.schemas.token import Token, RefreshTokenRequest
from app.schemas.franchise import Franchise, FranchiseCreate, FranchiseUpdate, FranchiseFeeSummary
from app.schemas.team import Team, TeamCreate, TeamUpdate, Room, RoomCreate, RoomUpdate
from app.schemas.patient import Patient, PatientCreate, PatientUpdate
from app.schemas.appointment import Appointment, AppointmentCreate, AppointmentUpdate
from app.schemas.consultation import Consultation, ConsultationCreate, ConsultationUpdate
from app.schemas.medicine_bill import MedicineBill, MedicineBillCreate
from app.schemas.sale import Sale, SaleCreate, SaleUpdate
from app.schemas.transport import Transport, TransportCreate, TransportUpdate

__all__ = [
    "User",
    "UserCreate",
    "UserUpdate",
    "UserLogin",
    "PasswordChange",
    "ProfileUpdate",
    "Token",
    "RefreshTokenRequest",
    "Franchise",
    "FranchiseCreate",
    "FranchiseUpdate",
    "FranchiseFeeSummary",
    "Team",
    "TeamCreate",
    "TeamUpdate",
    "Room",
    "RoomCreate",
    "RoomUpdate",
    "Patient",
    "PatientCreate",
    "PatientUpdate",
    "Appointment",
    "AppointmentCreate",
    "AppointmentUpdate",
    "Consultation",
    "ConsultationCreate",
    "ConsultationUpdate",
    "MedicineBill",
    "MedicineBillCreate",
    "Sale",
    "SaleCreate",
    "SaleUpdate",
    "Transport",
    "TransportCreate",
    "TransportUpdate",
]
