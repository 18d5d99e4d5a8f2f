from django.apps import AppConfig


class MealflowConfig(AppConfig):
    name = 'mealflow'
    verbose_name = 'MealFlow'
    default_auto_field = 'django.db.models.BigAutoField'
