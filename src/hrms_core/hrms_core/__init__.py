"""HRMS core package.

Attendance, leave and payroll are organized as feature modules
(model / repository / service / controller) on top of a shared
MySQL storage layer.
"""
